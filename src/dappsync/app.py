"""Application orchestration entry points."""

from __future__ import annotations

import time
from logging import getLogger
from typing import TYPE_CHECKING

from dappsync.adapters.alchemy import AlchemyDirectory
from dappsync.adapters.alchemy import should_cache_payload as directory_cache_predicate
from dappsync.adapters.datocms import DatoCmsRecordStore
from dappsync.adapters.defillama import DefiLlamaAnalytics
from dappsync.adapters.defillama import should_cache_payload as analytics_cache_predicate
from dappsync.config import (
    SyncConfig,
    get_alchemy_config,
    get_datocms_config,
    get_defillama_config,
    get_sync_config,
)
from dappsync.domain.data_integration import (
    generate_unified_metadata,
    link_chains,
    merge_duplicate_records,
    sync_records,
)
from dappsync.domain.reconciliation.chains import ChainMatcher
from dappsync.domain.reconciliation.reconcile import SourceReconciler
from dappsync.domain.reconciliation.serialize import SizeBudgetSerializer
from dappsync.domain.reference import DEFAULT_REFERENCE_DATA

if TYPE_CHECKING:
    from dappsync.domain.data_integration import BatchSummary, Sleep
    from dappsync.domain.ports import AnalyticsProvider, DirectoryProvider, RecordStore
    from dappsync.domain.reference import ReferenceData

log = getLogger(__name__)


def build_record_store() -> RecordStore:
    return DatoCmsRecordStore(config=get_datocms_config())


def build_analytics_provider() -> AnalyticsProvider:
    return DefiLlamaAnalytics(
        config=get_defillama_config(cache_predicate=analytics_cache_predicate)
    )


def build_directory_provider() -> DirectoryProvider:
    return AlchemyDirectory(config=get_alchemy_config(cache_predicate=directory_cache_predicate))


def build_chain_matcher(reference: ReferenceData = DEFAULT_REFERENCE_DATA) -> ChainMatcher:
    return ChainMatcher(reference.chains)


def merge_duplicate_dapps(
    *,
    store: RecordStore | None = None,
    dry_run: bool = False,
    config: SyncConfig | None = None,
    sleep: Sleep = time.sleep,
) -> BatchSummary:
    """Collapse duplicate dapps in the configured record store."""

    settings = config or get_sync_config()
    log.info("Starting duplicate merge%s", " (dry run)" if dry_run else "")
    return merge_duplicate_records(
        store or build_record_store(),
        delete_delay=settings.merge_delete_delay,
        dry_run=dry_run,
        sleep=sleep,
    )


def generate_metadata(
    *,
    store: RecordStore | None = None,
    budget_bytes: int | None = None,
    force_minimal: bool = False,
    reference: ReferenceData = DEFAULT_REFERENCE_DATA,
    config: SyncConfig | None = None,
    sleep: Sleep = time.sleep,
) -> BatchSummary:
    """Rebuild the unified metadata blob on every dapp."""

    settings = config or get_sync_config()
    budget = budget_bytes if budget_bytes is not None else settings.metadata_budget_bytes
    if budget <= 0:
        raise ValueError("Budget must be a positive number of bytes")
    log.info(
        "Starting unified metadata generation: budget=%d bytes, minimal=%s", budget, force_minimal
    )
    return generate_unified_metadata(
        store or build_record_store(),
        reconciler=SourceReconciler(reference, matcher=build_chain_matcher(reference)),
        serializer=SizeBudgetSerializer(budget),
        minimal_threshold_bytes=settings.minimal_mode_threshold_bytes,
        record_budget_bytes=settings.record_budget_bytes,
        force_minimal=force_minimal,
        update_delay=settings.metadata_update_delay,
        sleep=sleep,
    )


def sync_dapps(
    *,
    store: RecordStore | None = None,
    analytics: AnalyticsProvider | None = None,
    directory: DirectoryProvider | None = None,
    limit: int | None = None,
    config: SyncConfig | None = None,
    sleep: Sleep = time.sleep,
) -> BatchSummary:
    """Refresh every dapp from the analytics and directory providers."""

    settings = config or get_sync_config()
    log.info("Starting dapp sync: limit=%s", limit)
    return sync_records(
        store or build_record_store(),
        analytics=analytics or build_analytics_provider(),
        directory=directory or build_directory_provider(),
        limit=limit,
        sync_delay=settings.sync_delay,
        sleep=sleep,
    )


def link_dapp_chains(
    *,
    store: RecordStore | None = None,
    dry_run: bool = False,
    reference: ReferenceData = DEFAULT_REFERENCE_DATA,
    config: SyncConfig | None = None,
    sleep: Sleep = time.sleep,
) -> BatchSummary:
    """Link every dapp to the chain items named in its directory blob."""

    settings = config or get_sync_config()
    log.info("Starting chain linking%s", " (dry run)" if dry_run else "")
    return link_chains(
        store or build_record_store(),
        matcher=build_chain_matcher(reference),
        link_delay=settings.link_delay,
        dry_run=dry_run,
        sleep=sleep,
    )
