"""Unified per-dapp metadata produced by a reconciliation pass."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Final

from .enums import SourceTag

type JsonScalar = str | int | float | bool | None
type JsonValue = JsonScalar | list[JsonValue] | dict[str, JsonValue]

COMPLETENESS_FIELDS: Final[tuple[str, ...]] = (
    "name",
    "slug",
    "description",
    "logoUrl",
    "tvlUsd",
    "category",
    "chains",
    "websiteUrl",
    "twitterUrl",
    "githubUrl",
)


def is_present(value: object) -> bool:
    """Whether a value survives the sparse-output rule."""

    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return len(value) > 0
    return True


def completeness_score(fields: Mapping[str, object]) -> int:
    filled = sum(1 for name in COMPLETENESS_FIELDS if is_present(fields.get(name)))
    return round(filled * 100 / len(COMPLETENESS_FIELDS))


class ProvenanceMismatchError(ValueError):
    """Raised when ``sources`` and the metadata values disagree."""

    def __init__(self, *, unattributed: set[str], orphaned: set[str]) -> None:
        self.unattributed = unattributed
        self.orphaned = orphaned
        super().__init__(
            "Unified metadata provenance mismatch: "
            f"unattributed={sorted(unattributed)}, orphaned={sorted(orphaned)}"
        )


@dataclass(frozen=True, slots=True)
class DataQuality:
    has_directory_data: bool
    has_analytics_data: bool
    completeness_score: int

    def to_payload(self) -> dict[str, JsonValue]:
        return {
            "hasDirectoryData": self.has_directory_data,
            "hasAnalyticsData": self.has_analytics_data,
            "completenessScore": self.completeness_score,
        }


@dataclass(frozen=True, slots=True, kw_only=True)
class UnifiedMetadata:
    """Sparse field mapping plus per-field provenance.

    Every key of ``sources`` has a present value in ``fields`` and every key of
    ``fields`` is attributed in ``sources``. The completeness score is derived
    from ``fields`` and is recomputed whenever a field is dropped.
    """

    fields: Mapping[str, JsonValue]
    sources: Mapping[str, SourceTag]
    has_directory_data: bool = False
    has_analytics_data: bool = False
    last_updated: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    def __post_init__(self) -> None:
        present = {name for name, value in self.fields.items() if is_present(value)}
        if present != set(self.fields):
            object.__setattr__(
                self, "fields", {name: self.fields[name] for name in self.fields if name in present}
            )
        unattributed = present - set(self.sources)
        orphaned = set(self.sources) - present
        if unattributed or orphaned:
            raise ProvenanceMismatchError(unattributed=unattributed, orphaned=orphaned)

    @property
    def data_quality(self) -> DataQuality:
        return DataQuality(
            has_directory_data=self.has_directory_data,
            has_analytics_data=self.has_analytics_data,
            completeness_score=completeness_score(self.fields),
        )

    def get(self, name: str) -> JsonValue:
        return self.fields.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def with_field(self, name: str, value: JsonValue) -> UnifiedMetadata:
        """Return a copy with ``name`` replaced; the field must already exist."""

        if name not in self.fields:
            raise KeyError(name)
        return replace(self, fields={**self.fields, name: value})

    def without(self, *names: str) -> UnifiedMetadata:
        """Return a copy with the given fields and their provenance removed."""

        return replace(
            self,
            fields={key: value for key, value in self.fields.items() if key not in names},
            sources={key: tag for key, tag in self.sources.items() if key not in names},
        )

    def to_payload(self) -> dict[str, JsonValue]:
        payload: dict[str, JsonValue] = dict(self.fields)
        payload["sources"] = {name: str(tag) for name, tag in self.sources.items()}
        payload["lastUpdated"] = self.last_updated.astimezone(UTC).isoformat().replace(
            "+00:00", "Z"
        )
        payload["dataQuality"] = self.data_quality.to_payload()
        return payload
