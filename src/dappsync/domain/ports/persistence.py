"""Ports for the content store holding dapp and chain items."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

if TYPE_CHECKING:
    from dappsync.domain.model import StoreChainItem, StoreRecord

type RecordChanges = Mapping[str, object]

WRITABLE_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "title",
        "slug",
        "short_description",
        "protocol_id",
        "tvl_usd",
        "category",
        "enrichment",
        "chain_tvl",
        "last_synced_at",
        "last_sync_status",
        "token_price_usd",
        "chain_ids",
        "defillama_url",
        "unified_metadata",
    }
)


class RecordStoreError(RuntimeError):
    """A record store call failed; the affected record is skipped."""


class RecordStoreUnavailableError(RecordStoreError):
    """The record store cannot be reached at all."""


class RecordTooLargeError(RecordStoreError):
    """The store refused a write because the record would exceed its size limit."""


class UnknownFieldError(KeyError):
    """Raised when a change set names a field the store does not persist."""

    def __init__(self, names: set[str]) -> None:
        self.names = names
        super().__init__(f"Unknown record field(s): {sorted(names)}")


def check_changes(changes: RecordChanges) -> None:
    unknown = set(changes) - WRITABLE_FIELDS
    if unknown:
        raise UnknownFieldError(unknown)


@dataclass(frozen=True, slots=True, kw_only=True)
class RecordQuery:
    """Field equality filters and an optional ordering for ``list_records``."""

    filters: Mapping[str, object] = field(default_factory=dict[str, object])
    order_by: str | None = None


@runtime_checkable
class RecordStore(Protocol):
    """Persistence contract for dapp records and the chain items they link to.

    Writes take change sets keyed by ``StoreRecord`` field names (see
    ``WRITABLE_FIELDS``). Listing right after a write may not reflect it yet.
    """

    def list_records(self, query: RecordQuery | None = None) -> list[StoreRecord]: ...

    def list_chains(self) -> list[StoreChainItem]: ...

    def get(self, record_id: str) -> StoreRecord: ...

    def create(self, changes: RecordChanges) -> StoreRecord: ...

    def update(self, record_id: str, changes: RecordChanges) -> StoreRecord: ...

    def publish(self, record_id: str) -> None: ...

    def destroy(self, record_id: str) -> None: ...


__all__ = [
    "WRITABLE_FIELDS",
    "RecordChanges",
    "RecordQuery",
    "RecordStore",
    "RecordStoreError",
    "RecordStoreUnavailableError",
    "UnknownFieldError",
    "check_changes",
]
