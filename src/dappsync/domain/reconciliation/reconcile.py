"""Fuse one canonical store record with its directory and analytics counterparts.

Every field is resolved independently with a fixed source precedence and
written together with its provenance. A field fed by two providers (one
supplied a value, another overrode or extended it) is attributed to ``both``.
Values that resolve to nothing are never written, so the result is sparse.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final
from urllib.parse import urlsplit

from dappsync.domain.model import (
    JsonValue,
    Provider,
    ReconcileMode,
    SourceTag,
    UnifiedMetadata,
    is_present,
)
from dappsync.domain.reference import DEFAULT_REFERENCE_DATA, ReferenceData

if TYPE_CHECKING:
    from dappsync.domain.model import AnalyticsRecord, DirectoryRecord, StoreRecord

    from .chains import ChainMatcher

log = logging.getLogger(__name__)

DESCRIPTION_LIMITS: Final[dict[ReconcileMode, int]] = {
    ReconcileMode.FULL: 3000,
    ReconcileMode.MINIMAL: 500,
}
TRUNCATION_SUFFIX: Final = "..."
CHAIN_TVL_LIMIT: Final = 10
RELATED_DAPPS_LIMIT: Final = 6
_TWITTER_HOSTS: Final = frozenset({"twitter.com", "x.com"})
_GITHUB_URL: Final = "https://github.com"


@dataclass(frozen=True, slots=True)
class PageUrls:
    """Public pages linked from the unified record."""

    defillama_protocol: str = "https://defillama.com/protocol"
    alchemy_dapp: str = "https://dapp-store.alchemy.com/dapps"

    def defillama_url(self, protocol_id: str) -> str:
        return f"{self.defillama_protocol.rstrip('/')}/{protocol_id}"

    def alchemy_url(self, slug: str) -> str:
        return f"{self.alchemy_dapp.rstrip('/')}/{slug}"


def truncate_description(text: str, limit: int) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_SUFFIX


def twitter_link(value: str | None) -> tuple[str | None, str | None]:
    """Return ``(url, @handle)`` for a twitter handle or profile URL."""

    if value is None or not value.strip():
        return None, None
    text = value.strip()
    if text.startswith("http"):
        parts = urlsplit(text)
        host = parts.netloc.lower().removeprefix("www.")
        segments = [segment for segment in parts.path.split("/") if segment]
        if host in _TWITTER_HOSTS and segments:
            return text, f"@{segments[0]}"
        return text, None
    handle = text.lstrip("@").strip()
    if not handle:
        return None, None
    return f"https://twitter.com/{handle}", f"@{handle}"


def github_link(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text.startswith("http"):
        return text
    return f"{_GITHUB_URL}/{text.strip('/')}"


class _FieldSink:
    """Collects resolved values and their provenance side by side."""

    def __init__(self) -> None:
        self.fields: dict[str, JsonValue] = {}
        self.sources: dict[str, SourceTag] = {}

    def put(self, name: str, value: JsonValue, providers: Iterable[Provider]) -> None:
        if not is_present(value):
            return
        contributors = set(providers)
        if not contributors:
            msg = f"Field {name!r} has a value but no contributing provider"
            raise ValueError(msg)
        self.fields[name] = value
        if len(contributors) > 1:
            self.sources[name] = SourceTag.BOTH
        else:
            self.sources[name] = SourceTag.for_provider(contributors.pop())


def _overridden(
    base: str | None, base_provider: Provider, override: str | None, override_provider: Provider
) -> tuple[str | None, list[Provider]]:
    """``override`` wins when present; both count when both were present."""

    has_base = is_present(base)
    if is_present(override):
        return override, [override_provider, base_provider] if has_base else [override_provider]
    if has_base:
        return base, [base_provider]
    return None, []


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class SourceReconciler:
    """Build ``UnifiedMetadata`` from one record per provider."""

    def __init__(
        self,
        reference: ReferenceData = DEFAULT_REFERENCE_DATA,
        *,
        matcher: ChainMatcher | None = None,
        page_urls: PageUrls | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.reference = reference
        self.matcher = matcher
        self.page_urls = page_urls or PageUrls()
        self._clock = clock

    def reconcile(
        self,
        store: StoreRecord,
        directory: DirectoryRecord | None = None,
        analytics: AnalyticsRecord | None = None,
        *,
        mode: ReconcileMode = ReconcileMode.FULL,
    ) -> UnifiedMetadata:
        sink = _FieldSink()
        self._identity(sink, store, directory, analytics)
        self._description(sink, store, directory, mode)
        self._logo(sink, store, directory)
        self._chains(sink, store, directory, analytics)
        self._categories(sink, store, directory, analytics)
        if analytics is not None:
            self._financials(sink, analytics, mode)
        self._links(sink, store, directory, analytics)
        if directory is not None:
            self._directory_extras(sink, directory)

        metadata = UnifiedMetadata(
            fields=sink.fields,
            sources=sink.sources,
            has_directory_data=directory is not None,
            has_analytics_data=analytics is not None,
            last_updated=self._clock(),
        )
        log.debug(
            "Reconciled id=%s: %d field(s), completeness=%d%%",
            store.id,
            len(metadata.fields),
            metadata.data_quality.completeness_score,
        )
        return metadata

    def _identity(
        self,
        sink: _FieldSink,
        store: StoreRecord,
        directory: DirectoryRecord | None,
        analytics: AnalyticsRecord | None,
    ) -> None:
        title = store.title.strip() if store.title else None
        directory_name = directory.name.strip() if directory and directory.name else None
        if directory_name and len(directory_name) > len(title or ""):
            sink.put(
                "name",
                directory_name,
                [Provider.DIRECTORY, Provider.STORE] if title else [Provider.DIRECTORY],
            )
        else:
            sink.put("name", title, [Provider.STORE])

        if is_present(store.slug):
            sink.put("slug", store.slug, [Provider.STORE])
        elif directory is not None and is_present(directory.slug):
            sink.put("slug", directory.slug, [Provider.DIRECTORY])
        elif analytics is not None:
            sink.put("slug", analytics.protocol_id, [Provider.ANALYTICS])

    def _description(
        self,
        sink: _FieldSink,
        store: StoreRecord,
        directory: DirectoryRecord | None,
        mode: ReconcileMode,
    ) -> None:
        candidates: list[tuple[str, Provider]] = []
        if store.short_description:
            candidates.append((store.short_description.strip(), Provider.STORE))
        if directory is not None:
            for text in (directory.description, directory.long_description):
                if text:
                    candidates.append((text.strip(), Provider.DIRECTORY))
        candidates = [candidate for candidate in candidates if candidate[0]]
        if not candidates:
            return
        text, provider = max(candidates, key=lambda candidate: len(candidate[0]))
        sink.put("description", truncate_description(text, DESCRIPTION_LIMITS[mode]), [provider])

    def _logo(
        self, sink: _FieldSink, store: StoreRecord, directory: DirectoryRecord | None
    ) -> None:
        if is_present(store.logo_url):
            sink.put("logoUrl", store.logo_url, [Provider.STORE])
        elif directory is not None:
            sink.put("logoUrl", directory.logo_url, [Provider.DIRECTORY])

    def _chains(
        self,
        sink: _FieldSink,
        store: StoreRecord,
        directory: DirectoryRecord | None,
        analytics: AnalyticsRecord | None,
    ) -> None:
        contributions: list[tuple[Iterable[str], Provider]] = [(store.chain_names, Provider.STORE)]
        if directory is not None:
            contributions.append((directory.chain_names, Provider.DIRECTORY))
        if analytics is not None:
            contributions.append((analytics.chain_tvl.keys(), Provider.ANALYTICS))

        chains: dict[str, str] = {}
        providers: set[Provider] = set()
        for names, provider in contributions:
            cleaned = [name.strip() for name in names if name and name.strip()]
            if self.matcher is not None:
                cleaned = self.matcher.canonical_names(cleaned)
            for name in cleaned:
                chains.setdefault(name.casefold(), name)
                providers.add(provider)
        ordered = sorted(chains.values(), key=lambda name: (name.casefold(), name))
        sink.put("chains", ordered, providers)

    def _categories(
        self,
        sink: _FieldSink,
        store: StoreRecord,
        directory: DirectoryRecord | None,
        analytics: AnalyticsRecord | None,
    ) -> None:
        directory_categories = [
            name.strip()
            for name in (directory.category_names if directory is not None else ())
            if name.strip() and not self.reference.is_excluded_category(name)
        ]

        store_category = store.category.strip() if store.category else ""
        if store_category:
            sink.put("category", store_category, [Provider.STORE])
        elif analytics is not None and is_present(analytics.category):
            sink.put("category", analytics.category, [Provider.ANALYTICS])
        elif directory_categories:
            sink.put("category", directory_categories[0], [Provider.DIRECTORY])

        categories: dict[str, str] = {}
        providers: set[Provider] = set()
        if store_category and not self.reference.is_excluded_category(store_category):
            categories[store_category.casefold()] = store_category
            providers.add(Provider.STORE)
        for name in directory_categories:
            categories.setdefault(name.casefold(), name)
            providers.add(Provider.DIRECTORY)
        sink.put("categories", list(categories.values()), providers)

    def _financials(
        self, sink: _FieldSink, analytics: AnalyticsRecord, mode: ReconcileMode
    ) -> None:
        source = [Provider.ANALYTICS]
        if analytics.has_positive_tvl:
            sink.put("tvlUsd", analytics.tvl_usd, source)
        sink.put("isDefiProtocol", analytics.has_positive_tvl, source)
        if mode is ReconcileMode.FULL:
            top = sorted(
                ((chain, tvl) for chain, tvl in analytics.chain_tvl.items() if tvl > 0),
                key=lambda item: item[1],
                reverse=True,
            )[:CHAIN_TVL_LIMIT]
            sink.put("chainTvl", dict(top), source)
        sink.put("tvlChange1d", analytics.change_1d, source)
        sink.put("tvlChange7d", analytics.change_7d, source)
        sink.put("tvlChange1m", analytics.change_1m, source)
        sink.put("marketCap", analytics.market_cap, source)
        sink.put("tokenPrice", analytics.token_price, source)
        sink.put("tokenSymbol", analytics.token_symbol, source)
        sink.put("fdv", analytics.fdv, source)

    def _links(
        self,
        sink: _FieldSink,
        store: StoreRecord,
        directory: DirectoryRecord | None,
        analytics: AnalyticsRecord | None,
    ) -> None:
        website, providers = _overridden(
            directory.website_url if directory else None,
            Provider.DIRECTORY,
            analytics.url if analytics else None,
            Provider.ANALYTICS,
        )
        sink.put("websiteUrl", website, providers)

        twitter, providers = _overridden(
            directory.twitter if directory else None,
            Provider.DIRECTORY,
            analytics.twitter if analytics else None,
            Provider.ANALYTICS,
        )
        twitter_url, twitter_handle = twitter_link(twitter)
        sink.put("twitterUrl", twitter_url, providers)
        sink.put("twitterHandle", twitter_handle, providers)

        github, providers = _overridden(
            directory.github_url if directory else None,
            Provider.DIRECTORY,
            analytics.github if analytics else None,
            Provider.ANALYTICS,
        )
        sink.put("githubUrl", github_link(github), providers)

        if directory is not None:
            sink.put("discordUrl", directory.discord_url, [Provider.DIRECTORY])
            sink.put("documentationUrl", directory.docs_url, [Provider.DIRECTORY])

        protocol_id = analytics.protocol_id if analytics is not None else None
        if is_present(store.defillama_url):
            sink.put("defillamaUrl", store.defillama_url, [Provider.STORE])
        elif protocol_id:
            sink.put(
                "defillamaUrl", self.page_urls.defillama_url(protocol_id), [Provider.ANALYTICS]
            )
        if directory is not None and directory.slug:
            sink.put("alchemyUrl", self.page_urls.alchemy_url(directory.slug), [Provider.DIRECTORY])

    def _directory_extras(self, sink: _FieldSink, directory: DirectoryRecord) -> None:
        related: list[JsonValue] = []
        for dapp in directory.related[:RELATED_DAPPS_LIMIT]:
            entry: dict[str, JsonValue] = {
                "name": dapp.name,
                "slug": dapp.slug,
                "logoUrl": dapp.logo_url,
                "shortDescription": dapp.short_description,
            }
            related.append({key: value for key, value in entry.items() if is_present(value)})
        sink.put("relatedDapps", related, [Provider.DIRECTORY])
        sink.put("featured", bool(directory.featured), [Provider.DIRECTORY])
        sink.put("verified", bool(directory.verified), [Provider.DIRECTORY])


def reconcile(
    store: StoreRecord,
    directory: DirectoryRecord | None = None,
    analytics: AnalyticsRecord | None = None,
    *,
    mode: ReconcileMode = ReconcileMode.FULL,
    reference: ReferenceData = DEFAULT_REFERENCE_DATA,
    matcher: ChainMatcher | None = None,
) -> UnifiedMetadata:
    """Reconcile with a throwaway ``SourceReconciler``."""

    return SourceReconciler(reference, matcher=matcher).reconcile(
        store, directory, analytics, mode=mode
    )
