"""Codec for the JSON blobs persisted on store records.

Two text fields on a dapp record carry upstream data between runs:
- the enrichment blob: the directory listing plus cached analytics metrics
- the per-chain TVL list: ``[{"chain": ..., "tvl": ...}, ...]``

Malformed blobs are treated as absent; the caller proceeds with an empty
baseline.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import fields, replace
from typing import TYPE_CHECKING, Final

from dappsync.domain.model import (
    AnalyticsRecord,
    DirectoryRecord,
    RelatedDapp,
    is_present,
    loose_names,
)
from dappsync.domain.reconciliation.reconcile import github_link, twitter_link

if TYPE_CHECKING:
    from dappsync.domain.model import StoreRecord

log = logging.getLogger(__name__)

ENRICHMENT_SOURCE: Final = "alchemy_dapp_store"
METRICS_KEY: Final = "defillamaMetrics"
_RELATED_KEYS: Final = ("relatedDappsAndTools", "alternatives")


def parse_json_blob(text: str | None, *, record_id: str = "?") -> dict[str, object] | None:
    """Decode a stored JSON object; anything else counts as absent."""

    if not text or not text.strip():
        return None
    try:
        value = json.loads(text)
    except json.JSONDecodeError as exc:
        log.warning("Ignoring malformed JSON blob on record id=%s: %s", record_id, exc)
        return None
    if not isinstance(value, dict):
        log.warning("Ignoring non-object JSON blob on record id=%s", record_id)
        return None
    return value


def parse_chain_tvl(text: str | None, *, record_id: str = "?") -> dict[str, float]:
    if not text or not text.strip():
        return {}
    try:
        value = json.loads(text)
    except json.JSONDecodeError as exc:
        log.warning("Ignoring malformed chain TVL on record id=%s: %s", record_id, exc)
        return {}
    if not isinstance(value, list):
        return {}
    chain_tvl: dict[str, float] = {}
    for item in value:
        if not isinstance(item, Mapping):
            continue
        chain = _text(item.get("chain"))
        tvl = _number(item.get("tvl"))
        if chain and tvl:
            chain_tvl[chain] = tvl
    return chain_tvl


def encode_chain_tvl(chain_tvl: Mapping[str, float]) -> str:
    return json.dumps(
        [{"chain": chain, "tvl": tvl} for chain, tvl in chain_tvl.items()],
        separators=(",", ":"),
    )


def directory_record_from_blob(blob: Mapping[str, object]) -> DirectoryRecord:
    related: tuple[RelatedDapp, ...] = ()
    for key in _RELATED_KEYS:
        related = _related_dapps(blob.get(key))
        if related:
            break
    return DirectoryRecord(
        name=_text(blob.get("name")),
        slug=_text(blob.get("slug")),
        description=_text(blob.get("description")),
        long_description=_text(blob.get("longDescription")),
        logo_url=_text(blob.get("logoUrl")),
        chain_names=loose_names(blob.get("chains")),
        category_names=loose_names(blob.get("categories")),
        website_url=_text(blob.get("websiteUrl")),
        twitter=_text(blob.get("twitterUrl")) or _text(blob.get("twitter")),
        github_url=_text(blob.get("githubUrl")),
        discord_url=_text(blob.get("discordUrl")),
        docs_url=_text(blob.get("documentationUrl")),
        featured=_flag(blob, "featured"),
        verified=_flag(blob, "verified"),
        related=related,
    )


def blob_from_directory_record(record: DirectoryRecord) -> dict[str, object]:
    blob: dict[str, object] = {
        "name": record.name,
        "slug": record.slug,
        "description": record.description,
        "longDescription": record.long_description,
        "logoUrl": record.logo_url,
        "chains": list(record.chain_names),
        "categories": list(record.category_names),
        "websiteUrl": record.website_url,
        "twitterUrl": record.twitter,
        "githubUrl": record.github_url,
        "discordUrl": record.discord_url,
        "documentationUrl": record.docs_url,
        "featured": record.featured,
        "verified": record.verified,
        "relatedDappsAndTools": [
            {
                key: value
                for key, value in {
                    "name": dapp.name,
                    "slug": dapp.slug,
                    "logoCdnUrl": dapp.logo_url,
                    "shortDescription": dapp.short_description,
                }.items()
                if value is not None
            }
            for dapp in record.related
        ],
    }
    return {key: value for key, value in blob.items() if is_present(value)}


def overlay(base: DirectoryRecord, top: DirectoryRecord | None) -> DirectoryRecord:
    """Return ``base`` with every present field of ``top`` laid over it."""

    if top is None:
        return base
    changes = {
        item.name: getattr(top, item.name)
        for item in fields(top)
        if item.init and is_present(getattr(top, item.name))
    }
    return replace(base, **changes)


def analytics_metrics(record: AnalyticsRecord) -> dict[str, object]:
    metrics: dict[str, object] = {
        "change_1d": record.change_1d,
        "change_7d": record.change_7d,
        "change_1m": record.change_1m,
        "mcap": record.market_cap,
        "tokenPrice": record.token_price,
        "tokenSymbol": record.token_symbol,
        "fdv": record.fdv,
    }
    return {key: value for key, value in metrics.items() if value is not None}


def analytics_record_from_store(
    record: StoreRecord, blob: Mapping[str, object] | None
) -> AnalyticsRecord | None:
    """Rebuild the analytics view cached on a store record, if it has one."""

    raw_metrics = blob.get(METRICS_KEY) if blob is not None else None
    metrics: Mapping[str, object] = raw_metrics if isinstance(raw_metrics, Mapping) else {}
    if not (record.protocol_id or record.tvl_usd or metrics):
        return None
    return AnalyticsRecord(
        protocol_id=record.protocol_id,
        name=record.title,
        tvl_usd=record.tvl_usd,
        category=record.category,
        chain_tvl=parse_chain_tvl(record.chain_tvl, record_id=record.id),
        change_1d=_number(metrics.get("change_1d")),
        change_7d=_number(metrics.get("change_7d")),
        change_1m=_number(metrics.get("change_1m")),
        market_cap=_number(metrics.get("mcap")),
        token_price=_number(metrics.get("tokenPrice")) or record.token_price_usd,
        token_symbol=_text(metrics.get("tokenSymbol")),
        fdv=_number(metrics.get("fdv")),
    )


def refreshed_blob(
    existing: Mapping[str, object] | None,
    *,
    directory: DirectoryRecord | None = None,
    analytics: AnalyticsRecord | None = None,
) -> dict[str, object] | None:
    """Merge fresh directory and analytics data into a stored enrichment blob.

    Analytics links override directory links, and the analytics description
    replaces the long description only when it is longer. Returns ``None``
    when there is nothing to store.
    """

    if existing is None and directory is None and analytics is None:
        return None
    blob: dict[str, object] = dict(existing or {})
    if directory is not None:
        blob.update(blob_from_directory_record(directory))
    if analytics is not None:
        website = analytics.url
        twitter_url, _ = twitter_link(analytics.twitter)
        github = github_link(analytics.github)
        if website:
            blob["websiteUrl"] = website
        if twitter_url:
            blob["twitterUrl"] = twitter_url
        if github:
            blob["githubUrl"] = github
        current = _text(blob.get("longDescription")) or ""
        if analytics.description and len(analytics.description) > len(current):
            blob["longDescription"] = analytics.description
        metrics = analytics_metrics(analytics)
        if metrics:
            blob[METRICS_KEY] = metrics
    blob.setdefault("source", ENRICHMENT_SOURCE)
    return blob


def encode_blob(blob: Mapping[str, object]) -> str:
    return json.dumps(blob, ensure_ascii=False, separators=(",", ":"))


def _related_dapps(value: object) -> tuple[RelatedDapp, ...]:
    if not isinstance(value, list):
        return ()
    related: list[RelatedDapp] = []
    for item in value:
        if not isinstance(item, Mapping):
            continue
        name = _text(item.get("name"))
        if not name:
            continue
        related.append(
            RelatedDapp(
                name=name,
                slug=_text(item.get("slug")),
                logo_url=_text(item.get("logoCdnUrl")) or _text(item.get("logoUrl")),
                short_description=_text(item.get("shortDescription")),
            )
        )
    return tuple(related)


def _flag(blob: Mapping[str, object], key: str) -> bool | None:
    if key not in blob:
        return None
    return blob[key] is True


def _text(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _number(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)
