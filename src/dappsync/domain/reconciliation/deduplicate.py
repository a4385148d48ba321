"""Duplicate detection and canonical selection for store records.

Responsibilities of this stage:
- group store records by the identity key of their title
- score every member and pick one canonical survivor per group
- compute the fill-only merge patch salvaged from the losers
- avoid any store side effects (deletes happen in the batch service)

Selection is a pure function of the group's members, so re-running against
unchanged input always picks the same canonical record.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Final

from dappsync.domain.model import StoreRecord, is_present

from .normalize import identity_key

log = logging.getLogger(__name__)

SHORT_DESCRIPTION_POINTS: Final = 10
PROTOCOL_ID_POINTS: Final = 20
POSITIVE_TVL_POINTS: Final = 30
CATEGORY_POINTS: Final = 10
ENRICHMENT_POINTS: Final = 20
LAST_SYNCED_POINTS: Final = 10
TOKEN_PRICE_POINTS: Final = 10
PUBLISHED_POINTS: Final = 15

_DIGIT_RUN = re.compile(r"(\d+)")


def score_record(record: StoreRecord) -> int:
    """Additive completeness score used to rank duplicate candidates."""

    score = 0
    if is_present(record.short_description):
        score += SHORT_DESCRIPTION_POINTS
    if is_present(record.protocol_id):
        score += PROTOCOL_ID_POINTS
    if record.tvl_usd is not None and record.tvl_usd > 0:
        score += POSITIVE_TVL_POINTS
    if is_present(record.category):
        score += CATEGORY_POINTS
    if is_present(record.enrichment):
        score += ENRICHMENT_POINTS
    if record.last_synced_at is not None:
        score += LAST_SYNCED_POINTS
    if record.token_price_usd is not None and record.token_price_usd > 0:
        score += TOKEN_PRICE_POINTS
    if record.is_published:
        score += PUBLISHED_POINTS
    return score


def natural_id_key(record_id: str) -> tuple[tuple[tuple[int, int, str], ...], str]:
    """Sort key comparing digit runs numerically, so ``rec100`` > ``rec99``."""

    parts = tuple(
        (1, int(chunk), "") if chunk.isdigit() else (0, 0, chunk)
        for chunk in _DIGIT_RUN.split(record_id)
        if chunk
    )
    return parts, record_id


@dataclass(frozen=True, slots=True, kw_only=True)
class MergePatch:
    """Values salvaged from losing records; unset fields are left alone."""

    short_description: str | None = None
    tvl_usd: float | None = None
    enrichment: str | None = None

    def __bool__(self) -> bool:
        return bool(self.changes())

    def changes(self) -> dict[str, object]:
        values: dict[str, object] = {
            "short_description": self.short_description,
            "tvl_usd": self.tvl_usd,
            "enrichment": self.enrichment,
        }
        return {name: value for name, value in values.items() if value is not None}

    def applied_to(self, record: StoreRecord) -> StoreRecord:
        return replace(record, **self.changes())  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True)
class DuplicateGroup:
    """Store records sharing one identity key, with the canonical choice made."""

    key: str
    canonical: StoreRecord
    losers: tuple[StoreRecord, ...] = ()
    patch: MergePatch = field(default_factory=MergePatch)
    scores: Mapping[str, int] = field(default_factory=dict[str, int])

    @property
    def has_duplicates(self) -> bool:
        return bool(self.losers)

    @property
    def members(self) -> tuple[StoreRecord, ...]:
        return (self.canonical, *self.losers)

    @property
    def merged(self) -> StoreRecord:
        return self.patch.applied_to(self.canonical)


def group_and_resolve(records: Iterable[StoreRecord]) -> list[DuplicateGroup]:
    """Group ``records`` by identity key and resolve every group.

    Singleton groups are returned too. Groups are ordered by key; records whose
    title normalizes to nothing are skipped.
    """

    grouped: dict[str, list[StoreRecord]] = {}
    for record in records:
        key = identity_key(record.title)
        if not key:
            log.warning("Skipping record id=%s with unusable title %r", record.id, record.title)
            continue
        grouped.setdefault(key, []).append(record)
    return [resolve_group(key, grouped[key]) for key in sorted(grouped)]


def resolve_group(key: str, members: Iterable[StoreRecord]) -> DuplicateGroup:
    unique = {record.id: record for record in members}
    scores = {record_id: score_record(record) for record_id, record in unique.items()}
    ranked = sorted(
        unique.values(),
        key=lambda record: (scores[record.id], natural_id_key(record.id)),
        reverse=True,
    )
    if not ranked:
        msg = f"Cannot resolve empty duplicate group {key!r}"
        raise ValueError(msg)
    canonical, *losers = ranked
    patch = merge_patch(canonical, losers)
    if losers:
        log.info(
            "Group %r: keeping id=%s (score=%d), %d duplicate(s)",
            key,
            canonical.id,
            scores[canonical.id],
            len(losers),
        )
    return DuplicateGroup(
        key=key, canonical=canonical, losers=tuple(losers), patch=patch, scores=scores
    )


def merge_patch(canonical: StoreRecord, losers: Iterable[StoreRecord]) -> MergePatch:
    """Fill the canonical record's gaps from the losers, in rank order.

    Description and enrichment are only filled when missing. TVL is taken from
    a loser only when it is strictly greater than the current value, with a
    missing value counting as zero.
    """

    description = canonical.short_description
    tvl = canonical.tvl_usd
    enrichment = canonical.enrichment
    patch: dict[str, object] = {}
    for loser in losers:
        if not is_present(description) and is_present(loser.short_description):
            description = loser.short_description
            patch["short_description"] = description
        if loser.tvl_usd is not None and loser.tvl_usd > (tvl or 0):
            tvl = loser.tvl_usd
            patch["tvl_usd"] = tvl
        if not is_present(enrichment) and is_present(loser.enrichment):
            enrichment = loser.enrichment
            patch["enrichment"] = enrichment
    return MergePatch(**patch)  # type: ignore[arg-type]
