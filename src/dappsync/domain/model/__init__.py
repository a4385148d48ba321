"""Public domain model surface."""

from __future__ import annotations

from dappsync.domain.model.chains import ChainIdentity
from dappsync.domain.model.enums import Provider, PublishStatus, ReconcileMode, SourceTag
from dappsync.domain.model.metadata import (
    COMPLETENESS_FIELDS,
    DataQuality,
    JsonValue,
    ProvenanceMismatchError,
    UnifiedMetadata,
    completeness_score,
    is_present,
)
from dappsync.domain.model.records import (
    AnalyticsRecord,
    DirectoryRecord,
    RelatedDapp,
    SourceRecord,
    StoreChainItem,
    StoreRecord,
    is_opaque_reference,
    loose_names,
)

__all__ = [  # noqa: RUF022
    # records
    "AnalyticsRecord",
    "DirectoryRecord",
    "RelatedDapp",
    "SourceRecord",
    "StoreChainItem",
    "StoreRecord",
    "is_opaque_reference",
    "loose_names",
    # chains
    "ChainIdentity",
    # metadata
    "COMPLETENESS_FIELDS",
    "DataQuality",
    "JsonValue",
    "ProvenanceMismatchError",
    "UnifiedMetadata",
    "completeness_score",
    "is_present",
    # enums
    "Provider",
    "PublishStatus",
    "ReconcileMode",
    "SourceTag",
]
