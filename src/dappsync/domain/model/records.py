"""Source records as they arrive from the three upstream providers.

Each provider has its own incompatible field set, so records are modelled as a
tagged union keyed by ``source`` rather than one catch-all bag. Records are
immutable and live for a single reconciliation pass.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .enums import Provider, PublishStatus

if TYPE_CHECKING:
    from datetime import datetime

_OPAQUE_REFERENCE = re.compile(r"^rec[a-zA-Z0-9]+$")
_OPAQUE_REFERENCE_MIN_LENGTH = 11


def is_opaque_reference(value: str) -> bool:
    """Return True for directory record ids such as ``recA1b2C3d4E5``."""

    return len(value) >= _OPAQUE_REFERENCE_MIN_LENGTH and bool(_OPAQUE_REFERENCE.match(value))


def loose_names(values: object) -> tuple[str, ...]:
    """Extract display names from a loosely typed sequence.

    Accepts strings, mappings carrying ``name`` or ``title``, and skips opaque
    reference ids, blanks and anything else. Order is preserved and exact
    duplicates are dropped.
    """

    if isinstance(values, str) or not isinstance(values, Iterable):
        return ()
    names: list[str] = []
    for value in values:
        candidate: object = value
        if isinstance(value, Mapping):
            candidate = value.get("name") or value.get("title")
        if not isinstance(candidate, str):
            continue
        name = candidate.strip()
        if not name or is_opaque_reference(name) or name in names:
            continue
        names.append(name)
    return tuple(names)


@dataclass(frozen=True, slots=True, kw_only=True)
class StoreRecord:
    """A dapp item persisted in the hand-curated content store."""

    id: str
    title: str | None = None
    slug: str | None = None
    short_description: str | None = None
    protocol_id: str | None = None
    tvl_usd: float | None = None
    category: str | None = None
    enrichment: str | None = None
    chain_tvl: str | None = None
    last_synced_at: datetime | None = None
    token_price_usd: float | None = None
    logo_url: str | None = None
    chain_ids: tuple[str, ...] = ()
    chain_names: tuple[str, ...] = ()
    status: PublishStatus | None = None
    defillama_url: str | None = None
    raw: Mapping[str, object] = field(default_factory=dict[str, object], repr=False)
    source: Provider = field(default=Provider.STORE, init=False)

    @property
    def is_published(self) -> bool:
        return self.status is PublishStatus.PUBLISHED

    @property
    def enrichment_size_bytes(self) -> int:
        if not self.enrichment:
            return 0
        return len(self.enrichment.encode("utf-8"))


@dataclass(frozen=True, slots=True, kw_only=True)
class RelatedDapp:
    name: str
    slug: str | None = None
    logo_url: str | None = None
    short_description: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class DirectoryRecord:
    """A dapp as listed by the third-party dapp directory."""

    name: str | None = None
    slug: str | None = None
    description: str | None = None
    long_description: str | None = None
    logo_url: str | None = None
    chain_names: tuple[str, ...] = ()
    category_names: tuple[str, ...] = ()
    website_url: str | None = None
    twitter: str | None = None
    github_url: str | None = None
    discord_url: str | None = None
    docs_url: str | None = None
    featured: bool | None = None
    verified: bool | None = None
    related: tuple[RelatedDapp, ...] = ()
    source: Provider = field(default=Provider.DIRECTORY, init=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class AnalyticsRecord:
    """A protocol as described by the DeFi analytics provider."""

    protocol_id: str | None = None
    name: str | None = None
    tvl_usd: float | None = None
    category: str | None = None
    chain_tvl: Mapping[str, float] = field(default_factory=dict[str, float])
    url: str | None = None
    twitter: str | None = None
    github: str | None = None
    description: str | None = None
    change_1d: float | None = None
    change_7d: float | None = None
    change_1m: float | None = None
    market_cap: float | None = None
    token_price: float | None = None
    token_symbol: str | None = None
    fdv: float | None = None
    source: Provider = field(default=Provider.ANALYTICS, init=False)

    @property
    def has_positive_tvl(self) -> bool:
        return self.tvl_usd is not None and self.tvl_usd > 0


type SourceRecord = StoreRecord | DirectoryRecord | AnalyticsRecord


@dataclass(frozen=True, slots=True, kw_only=True)
class StoreChainItem:
    """A chain item in the content store that dapps link to."""

    id: str
    name: str
