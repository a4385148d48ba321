"""Batch defaults for reconciliation runs."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_METADATA_BUDGET_BYTES = 250_000
DEFAULT_MINIMAL_MODE_THRESHOLD_BYTES = 200 * 1024
# Stored enrichment plus unified metadata must stay under the store item limit.
DEFAULT_RECORD_BUDGET_BYTES = 280 * 1024
DEFAULT_STORE_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class SyncConfig:
    """Cooperative throttling delays (seconds) and output limits."""

    merge_delete_delay: float = 0.2
    metadata_update_delay: float = 0.1
    sync_delay: float = 0.5
    link_delay: float = 0.2
    metadata_budget_bytes: int = DEFAULT_METADATA_BUDGET_BYTES
    minimal_mode_threshold_bytes: int = DEFAULT_MINIMAL_MODE_THRESHOLD_BYTES
    record_budget_bytes: int = DEFAULT_RECORD_BUDGET_BYTES
    store_page_size: int = DEFAULT_STORE_PAGE_SIZE


def get_sync_config() -> SyncConfig:
    return SyncConfig()
