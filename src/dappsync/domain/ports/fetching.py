"""Ports for the read-only upstream catalogs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from dappsync.domain.model import AnalyticsRecord, DirectoryRecord


class ProviderError(RuntimeError):
    """An upstream catalog returned an unusable response."""


@dataclass(slots=True)
class DirectoryPage:
    """One page of the dapp directory listing."""

    records: list[DirectoryRecord] = field(default_factory=list["DirectoryRecord"])
    has_more: bool = False


@runtime_checkable
class DirectoryProvider(Protocol):
    """Paginated dapp directory."""

    def list_page(self, page: int) -> DirectoryPage: ...

    def get_detail(self, slug: str) -> DirectoryRecord | None: ...


@runtime_checkable
class AnalyticsProvider(Protocol):
    """DeFi protocol catalog."""

    def list_protocols(self) -> list[AnalyticsRecord]: ...

    def get_protocol(self, protocol_id: str) -> AnalyticsRecord | None: ...


__all__ = [
    "AnalyticsProvider",
    "DirectoryPage",
    "DirectoryProvider",
    "ProviderError",
]
