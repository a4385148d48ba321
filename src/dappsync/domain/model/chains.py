from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ChainIdentity:
    """Canonical chain entity with its aliases and support tier.

    ``priority`` is the support tier: 1 is the most supported, larger values
    are less supported.
    """

    canonical_name: str
    priority: int
    category: str
    aliases: frozenset[str] = field(default_factory=frozenset[str])

    def __str__(self) -> str:
        return self.canonical_name
