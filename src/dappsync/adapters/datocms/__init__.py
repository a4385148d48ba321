"""Public interface for the DatoCMS record store adapter."""

from __future__ import annotations

from .client import DatoCmsAPIError, DatoCmsClient, DatoCmsRecordTooLargeError
from .store import DatoCmsRecordStore
from .translator import attributes_from_changes, chain_item_from_item, store_record_from_item

__all__ = [
    "DatoCmsAPIError",
    "DatoCmsClient",
    "DatoCmsRecordStore",
    "DatoCmsRecordTooLargeError",
    "attributes_from_changes",
    "chain_item_from_item",
    "store_record_from_item",
]
