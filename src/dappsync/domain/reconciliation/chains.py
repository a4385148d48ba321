"""Resolve free-form chain names against the curated chain table.

Lookup precedence for one name:
1) exact match against a canonical name
2) exact match against an alias
3) containment in either direction against a canonical name or alias

The table is collision-free, so (1) and (2) never disagree. Containment walks
the table in declaration order and the first hit wins. Short table names such
as ``ink`` or ``op`` make containment over-eager; ``min_containment_length``
switches containment off for names shorter than the threshold.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .normalize import contains_either, normalize

if TYPE_CHECKING:
    from dappsync.domain.model import ChainIdentity
    from dappsync.domain.reference import ChainTable

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BatchResolution:
    """Chains touched by one record and the best tier among them."""

    identities: tuple[ChainIdentity, ...]
    priority: int | None
    category: str | None
    unresolved: tuple[str, ...] = ()

    @property
    def matched(self) -> bool:
        return self.priority is not None


class ChainMatcher:
    def __init__(self, table: ChainTable, *, min_containment_length: int = 0) -> None:
        self.table = table
        self.min_containment_length = min_containment_length
        self._names = tuple((identity, table.names_of(identity)) for identity in table)

    def resolve(self, raw_name: object) -> ChainIdentity | None:
        key = normalize(raw_name)
        if not key:
            return None
        exact = self.table.owner_of(key)
        if exact is not None:
            return exact
        for identity, names in self._names:
            for name in names:
                if self._contains(key, name):
                    log.debug("Chain %r matched %s by containment on %r", raw_name, identity, name)
                    return identity
        return None

    def resolve_batch(self, names: Iterable[object]) -> BatchResolution:
        identities: list[ChainIdentity] = []
        unresolved: list[str] = []
        for raw_name in names:
            identity = self.resolve(raw_name)
            if identity is None:
                if isinstance(raw_name, str) and raw_name.strip():
                    unresolved.append(raw_name.strip())
                continue
            if identity not in identities:
                identities.append(identity)
        if not identities:
            return BatchResolution(
                identities=(), priority=None, category=None, unresolved=tuple(unresolved)
            )
        best = min(identities, key=lambda identity: identity.priority)
        return BatchResolution(
            identities=tuple(identities),
            priority=best.priority,
            category=best.category,
            unresolved=tuple(unresolved),
        )

    def canonical_names(self, names: Iterable[str]) -> list[str]:
        """Map names to canonical names; unresolved names pass through unchanged."""

        resolved: list[str] = []
        for name in names:
            identity = self.resolve(name)
            resolved.append(identity.canonical_name if identity is not None else name)
        return resolved

    def rank[T](self, items: Iterable[T], chains_of: Callable[[T], Iterable[str]]) -> list[T]:
        """Stable sort by best chain tier; items touching no known chain go last."""

        def sort_key(item: T) -> tuple[bool, int]:
            priority = self.resolve_batch(chains_of(item)).priority
            if priority is None:
                return (True, 0)
            return (False, priority)

        return sorted(items, key=sort_key)

    def _contains(self, key: str, name: str) -> bool:
        if min(len(key), len(name)) < self.min_containment_length:
            return False
        return contains_either(key, name)
