"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Provider(StrEnum):
    """Upstream source a record was fetched from."""

    STORE = "store"
    DIRECTORY = "directory"
    ANALYTICS = "analytics"


class SourceTag(StrEnum):
    """Provenance label written into ``UnifiedMetadata.sources``."""

    STORE = "store"
    DIRECTORY = "directory"
    ANALYTICS = "analytics"
    BOTH = "both"

    @classmethod
    def for_provider(cls, provider: Provider) -> SourceTag:
        return cls(provider.value)


class PublishStatus(StrEnum):
    DRAFT = "draft"
    UPDATED = "updated"
    PUBLISHED = "published"


class ReconcileMode(StrEnum):
    FULL = "full"
    MINIMAL = "minimal"
