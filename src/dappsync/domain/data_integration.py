"""Application services running sequential batches against the record store.

Every service walks the records one at a time and pauses after each mutating
store call to respect the upstream rate limits. Per-record failures are
logged and counted; only losing the record store while listing aborts a run.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from dappsync.domain.enrichment import (
    analytics_record_from_store,
    directory_record_from_blob,
    encode_blob,
    encode_chain_tvl,
    overlay,
    parse_json_blob,
    refreshed_blob,
)
from dappsync.domain.model import ReconcileMode, loose_names
from dappsync.domain.ports import (
    ProviderError,
    RecordStoreError,
    RecordStoreUnavailableError,
    RecordTooLargeError,
)
from dappsync.domain.reconciliation.deduplicate import group_and_resolve
from dappsync.domain.reconciliation.normalize import names_equal, normalize
from dappsync.domain.reconciliation.reconcile import PageUrls
from dappsync.domain.reconciliation.serialize import BudgetExceededError

if TYPE_CHECKING:
    from dappsync.domain.model import (
        AnalyticsRecord,
        DirectoryRecord,
        StoreChainItem,
        StoreRecord,
    )
    from dappsync.domain.ports import (
        AnalyticsProvider,
        DirectoryProvider,
        RecordChanges,
        RecordStore,
    )
    from dappsync.domain.reconciliation.chains import ChainMatcher
    from dappsync.domain.reconciliation.reconcile import SourceReconciler
    from dappsync.domain.reconciliation.serialize import SizeBudgetSerializer

log = logging.getLogger(__name__)

type Sleep = Callable[[float], None]

DEFAULT_DIRECTORY_SEARCH_PAGES = 5
SYNC_STATUS_OK = "ok"


@dataclass(slots=True)
class BatchSummary:
    """Counts reported at the end of a batch run."""

    processed: int = 0
    groups: int = 0
    created: int = 0
    updated: int = 0
    merged: int = 0
    deleted: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)

    def __str__(self) -> str:
        return ", ".join(f"{name}={count}" for name, count in self.as_dict().items())


def _list_records(store: RecordStore) -> list[StoreRecord]:
    try:
        return store.list_records()
    except RecordStoreUnavailableError:
        log.exception("Record store unreachable; aborting run")
        raise


def _label(record: StoreRecord) -> str:
    return f"{record.title or 'Unknown'!r} (id={record.id})"


def merge_duplicate_records(
    store: RecordStore,
    *,
    delete_delay: float = 0.2,
    dry_run: bool = False,
    sleep: Sleep = time.sleep,
) -> BatchSummary:
    """Collapse duplicate dapps: write the merge patch, then delete the losers.

    Deletes for a group are only issued once its merge write succeeded.
    """

    summary = BatchSummary()
    records = _list_records(store)
    summary.processed = len(records)
    for group in group_and_resolve(records):
        if not group.has_duplicates:
            continue
        summary.groups += 1
        loser_ids = ", ".join(loser.id for loser in group.losers)
        if dry_run:
            log.info(
                "[dry-run] %s: keep %s, delete %s, merge %s",
                group.key,
                group.canonical.id,
                loser_ids,
                sorted(group.patch.changes()),
            )
            continue

        if group.patch:
            try:
                store.update(group.canonical.id, group.patch.changes())
            except RecordStoreError as exc:
                log.error(
                    "Merge into %s failed, keeping duplicates %s: %s",
                    _label(group.canonical),
                    loser_ids,
                    exc,
                )
                summary.failed += 1
                continue
            summary.merged += 1
            sleep(delete_delay)

        for loser in group.losers:
            try:
                store.destroy(loser.id)
            except RecordStoreError as exc:
                log.error("Deleting duplicate %s failed: %s", _label(loser), exc)
                summary.failed += 1
            else:
                summary.deleted += 1
                log.info("Deleted duplicate %s of %s", _label(loser), group.canonical.id)
            sleep(delete_delay)

    log.info("Duplicate merge finished: %s", summary)
    return summary


def generate_unified_metadata(
    store: RecordStore,
    *,
    reconciler: SourceReconciler,
    serializer: SizeBudgetSerializer,
    minimal_threshold_bytes: int = 200 * 1024,
    record_budget_bytes: int = 280 * 1024,
    force_minimal: bool = False,
    update_delay: float = 0.1,
    sleep: Sleep = time.sleep,
) -> BatchSummary:
    """Rebuild and store the unified metadata blob of every dapp.

    The stored enrichment and the new blob share one store item, so a record
    whose combined size exceeds ``record_budget_bytes`` is rebuilt in minimal
    mode, and skipped when even that does not fit.
    """

    summary = BatchSummary()
    for record in _list_records(store):
        summary.processed += 1
        existing = record.enrichment_size_bytes
        oversized = existing > minimal_threshold_bytes
        mode = ReconcileMode.MINIMAL if force_minimal or oversized else ReconcileMode.FULL

        blob = parse_json_blob(record.enrichment, record_id=record.id)
        directory = directory_record_from_blob(blob) if blob is not None else None
        analytics = analytics_record_from_store(record, blob)
        try:
            unified = reconciler.reconcile(record, directory, analytics, mode=mode)
            fitted = serializer.fit(unified)
            if mode is ReconcileMode.FULL and existing + fitted.size_bytes > record_budget_bytes:
                log.info("%s exceeds the record limit; rebuilding in minimal mode", _label(record))
                mode = ReconcileMode.MINIMAL
                unified = reconciler.reconcile(record, directory, analytics, mode=mode)
                fitted = serializer.fit(unified)
        except BudgetExceededError as exc:
            log.warning("Skipping %s: %s", _label(record), exc)
            summary.skipped += 1
            continue
        if existing + fitted.size_bytes > record_budget_bytes:
            log.warning(
                "Skipping %s: record already too large (%.1f KB existing)",
                _label(record),
                existing / 1024,
            )
            summary.skipped += 1
            continue

        try:
            store.update(record.id, {"unified_metadata": fitted.text})
        except RecordTooLargeError as exc:
            log.warning("Skipping %s: exceeds the store size limit: %s", _label(record), exc)
            summary.skipped += 1
        except RecordStoreError as exc:
            log.error("Writing unified metadata for %s failed: %s", _label(record), exc)
            summary.failed += 1
        else:
            summary.updated += 1
            log.info(
                "[%d%%] %s (%s, %.1f KB%s)",
                unified.data_quality.completeness_score,
                _label(record),
                mode,
                fitted.size_bytes / 1024,
                f", degraded: {', '.join(fitted.steps)}" if fitted.degraded else "",
            )
        sleep(update_delay)

    log.info("Unified metadata finished: %s", summary)
    return summary


class _ProtocolIndex:
    """Lazily loaded protocol list for name lookups."""

    def __init__(self, analytics: AnalyticsProvider) -> None:
        self._analytics = analytics
        self._protocols: list[AnalyticsRecord] | None = None

    def find_by_name(self, name: str) -> AnalyticsRecord | None:
        if self._protocols is None:
            self._protocols = self._analytics.list_protocols()
        for protocol in self._protocols:
            if names_equal(protocol.name, name):
                return protocol
        return None


def _fetch_analytics(
    record: StoreRecord, analytics: AnalyticsProvider, index: _ProtocolIndex
) -> AnalyticsRecord | None:
    if record.protocol_id:
        return analytics.get_protocol(record.protocol_id)
    if not record.title:
        return None
    match = index.find_by_name(record.title)
    if match is None or not match.protocol_id:
        return None
    log.info("Matched %s to protocol %s by name", _label(record), match.protocol_id)
    return analytics.get_protocol(match.protocol_id) or match


def _fetch_directory(
    record: StoreRecord,
    blob: dict[str, object] | None,
    directory: DirectoryProvider,
    *,
    max_pages: int,
) -> DirectoryRecord | None:
    stored = directory_record_from_blob(blob) if blob is not None else None
    if stored is not None and stored.slug:
        return overlay(stored, directory.get_detail(stored.slug))
    if not record.title:
        return None
    for page in range(1, max_pages + 1):
        listing = directory.list_page(page)
        for candidate in listing.records:
            if names_equal(candidate.name, record.title):
                detail = directory.get_detail(candidate.slug) if candidate.slug else None
                return overlay(candidate, detail)
        if not listing.has_more:
            break
    return None


def _sync_changes(
    record: StoreRecord,
    *,
    blob: dict[str, object] | None,
    analytics: AnalyticsRecord | None,
    directory: DirectoryRecord | None,
    now: datetime,
    page_urls: PageUrls,
) -> dict[str, object]:
    changes: dict[str, object] = {"last_synced_at": now, "last_sync_status": SYNC_STATUS_OK}
    if analytics is not None:
        if analytics.has_positive_tvl:
            changes["tvl_usd"] = analytics.tvl_usd
        if analytics.protocol_id and not record.protocol_id:
            changes["protocol_id"] = analytics.protocol_id
        if analytics.category:
            changes["category"] = analytics.category
        if analytics.chain_tvl:
            changes["chain_tvl"] = encode_chain_tvl(analytics.chain_tvl)
        if analytics.token_price is not None:
            changes["token_price_usd"] = analytics.token_price
    protocol_id = record.protocol_id or (analytics.protocol_id if analytics else None)
    if protocol_id:
        changes["defillama_url"] = page_urls.defillama_url(protocol_id)
    refreshed = refreshed_blob(blob, directory=directory, analytics=analytics)
    if refreshed is not None:
        changes["enrichment"] = encode_blob(refreshed)
    return changes


def sync_records(
    store: RecordStore,
    *,
    analytics: AnalyticsProvider,
    directory: DirectoryProvider,
    limit: int | None = None,
    sync_delay: float = 0.5,
    directory_search_pages: int = DEFAULT_DIRECTORY_SEARCH_PAGES,
    page_urls: PageUrls | None = None,
    clock: Callable[[], datetime] = lambda: datetime.now(tz=UTC),
    sleep: Sleep = time.sleep,
) -> BatchSummary:
    """Refresh analytics figures and the directory blob on every dapp, then publish.

    A TVL already on the record is never replaced by a missing one.
    """

    summary = BatchSummary()
    urls = page_urls or PageUrls()
    index = _ProtocolIndex(analytics)
    records = _list_records(store)
    if limit is not None:
        records = records[:limit]

    for record in records:
        summary.processed += 1
        blob = parse_json_blob(record.enrichment, record_id=record.id)

        analytics_record: AnalyticsRecord | None = None
        try:
            analytics_record = _fetch_analytics(record, analytics, index)
        except ProviderError as exc:
            log.warning("Analytics lookup for %s failed: %s", _label(record), exc)
        directory_record: DirectoryRecord | None = None
        try:
            directory_record = _fetch_directory(
                record, blob, directory, max_pages=directory_search_pages
            )
        except ProviderError as exc:
            log.warning("Directory lookup for %s failed: %s", _label(record), exc)

        changes = _sync_changes(
            record,
            blob=blob,
            analytics=analytics_record,
            directory=directory_record,
            now=clock(),
            page_urls=urls,
        )
        try:
            store.update(record.id, changes)
        except RecordStoreError as exc:
            log.error("Updating %s failed: %s", _label(record), exc)
            summary.failed += 1
            sleep(sync_delay)
            continue
        summary.updated += 1
        try:
            store.publish(record.id)
        except RecordStoreError as exc:
            log.warning("Updated %s but publishing failed: %s", _label(record), exc)
        else:
            log.info("Updated and published %s", _label(record))
        sleep(sync_delay)

    log.info("Sync finished: %s", summary)
    return summary


class _ChainIndex:
    """Store chain items keyed by normalized name and by canonical identity."""

    def __init__(self, items: list[StoreChainItem], matcher: ChainMatcher) -> None:
        self._matcher = matcher
        self._by_name: dict[str, StoreChainItem] = {}
        self._by_canonical: dict[str, StoreChainItem] = {}
        for item in items:
            key = normalize(item.name)
            if key:
                self._by_name.setdefault(key, item)
            identity = matcher.resolve(item.name)
            if identity is not None:
                self._by_canonical.setdefault(identity.canonical_name, item)

    def find(self, name: str) -> StoreChainItem | None:
        item = self._by_name.get(normalize(name))
        if item is not None:
            return item
        identity = self._matcher.resolve(name)
        if identity is None:
            return None
        return self._by_canonical.get(identity.canonical_name)


def link_chains(
    store: RecordStore,
    *,
    matcher: ChainMatcher,
    link_delay: float = 0.2,
    dry_run: bool = False,
    sleep: Sleep = time.sleep,
) -> BatchSummary:
    """Point each dapp's chain relationship at the chain items named in its blob."""

    summary = BatchSummary()
    try:
        chain_items = store.list_chains()
    except RecordStoreUnavailableError:
        log.exception("Record store unreachable; aborting run")
        raise
    index = _ChainIndex(chain_items, matcher)
    log.info("Indexed %d chain item(s)", len(chain_items))

    for record in _list_records(store):
        summary.processed += 1
        blob = parse_json_blob(record.enrichment, record_id=record.id)
        names = loose_names(blob.get("chains")) if blob is not None else ()
        chain_ids: list[str] = []
        for name in names:
            item = index.find(name)
            if item is None:
                log.debug("No chain item for %r on %s", name, _label(record))
                continue
            if item.id not in chain_ids:
                chain_ids.append(item.id)
        if not chain_ids or sorted(chain_ids) == sorted(record.chain_ids):
            summary.skipped += 1
            continue
        if dry_run:
            log.info("[dry-run] %s -> %s", _label(record), chain_ids)
            continue

        changes: RecordChanges = {"chain_ids": chain_ids}
        try:
            store.update(record.id, changes)
        except RecordStoreError as exc:
            log.error("Linking chains for %s failed: %s", _label(record), exc)
            summary.failed += 1
        else:
            summary.updated += 1
            log.info("Linked %s to %d chain(s)", _label(record), len(chain_ids))
        sleep(link_delay)

    log.info("Chain linking finished: %s", summary)
    return summary
