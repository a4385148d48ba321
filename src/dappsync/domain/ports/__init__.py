"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import AnalyticsProvider, DirectoryPage, DirectoryProvider, ProviderError
from .persistence import (
    WRITABLE_FIELDS,
    RecordChanges,
    RecordQuery,
    RecordStore,
    RecordStoreError,
    RecordStoreUnavailableError,
    RecordTooLargeError,
    UnknownFieldError,
    check_changes,
)

__all__ = [
    "WRITABLE_FIELDS",
    "AnalyticsProvider",
    "DirectoryPage",
    "DirectoryProvider",
    "ProviderError",
    "RecordChanges",
    "RecordQuery",
    "RecordStore",
    "RecordStoreError",
    "RecordStoreUnavailableError",
    "RecordTooLargeError",
    "UnknownFieldError",
    "check_changes",
]
