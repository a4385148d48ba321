"""Immutable reference data shared by the reconciliation components.

The chain table is built once at startup and passed by reference into the
chain matcher and the source reconciler. Nothing here is looked up ambiently,
so tests can inject a small table of their own.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Final

from dappsync.domain.model import ChainIdentity
from dappsync.domain.reconciliation.normalize import normalize

FOUNDATIONAL: Final = 1
FRONTIER: Final = 2
COMMUNITY: Final = 3
ARCHIVED: Final = 4

TIER_CATEGORIES: Final[dict[int, str]] = {
    FOUNDATIONAL: "Foundational Chain",
    FRONTIER: "Frontier Chain",
    COMMUNITY: "Community Chain",
    ARCHIVED: "Archived Chain",
}
DEFAULT_EXCLUDED_CATEGORIES: Final[frozenset[str]] = frozenset(
    {"Community Chain", "Archived Chain"}
)

type ChainEntry = tuple[str, int, tuple[str, ...]]


class MalformedChainTableError(ValueError):
    """Raised when two chain identities claim the same normalized name."""

    def __init__(self, *, name: str, first: str, second: str) -> None:
        self.name = name
        self.first = first
        self.second = second
        super().__init__(
            f"Chain table is malformed: {name!r} is claimed by both {first!r} and {second!r}"
        )


class EmptyChainNameError(ValueError):
    """Raised when a chain entry normalizes to the empty string."""

    def __init__(self, canonical_name: str, raw: str) -> None:
        self.canonical_name = canonical_name
        self.raw = raw
        super().__init__(f"Chain {canonical_name!r} has a name that normalizes to nothing: {raw!r}")


@dataclass(frozen=True, slots=True)
class ChainTable:
    """Ordered, collision-free collection of chain identities.

    Declaration order is significant: the matcher walks entries front to back
    and the first match wins.
    """

    identities: tuple[ChainIdentity, ...]
    _owners: dict[str, ChainIdentity] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        owners: dict[str, ChainIdentity] = {}
        for identity in self.identities:
            for raw in (identity.canonical_name, *sorted(identity.aliases)):
                key = normalize(raw)
                if not key:
                    raise EmptyChainNameError(identity.canonical_name, raw)
                owner = owners.get(key)
                if owner is not None and owner is not identity:
                    raise MalformedChainTableError(
                        name=key, first=owner.canonical_name, second=identity.canonical_name
                    )
                owners[key] = identity
        object.__setattr__(self, "_owners", owners)

    @classmethod
    def from_entries(cls, entries: Iterable[ChainEntry]) -> ChainTable:
        return cls(
            tuple(
                ChainIdentity(
                    canonical_name=name,
                    priority=tier,
                    category=TIER_CATEGORIES.get(tier, f"Tier {tier} Chain"),
                    aliases=frozenset(aliases),
                )
                for name, tier, aliases in entries
            )
        )

    def __iter__(self) -> Iterator[ChainIdentity]:
        return iter(self.identities)

    def __len__(self) -> int:
        return len(self.identities)

    def owner_of(self, normalized_name: str) -> ChainIdentity | None:
        """Identity whose canonical name or alias normalizes to ``normalized_name``."""

        return self._owners.get(normalized_name)

    def names_of(self, identity: ChainIdentity) -> tuple[str, ...]:
        """Normalized canonical name followed by normalized aliases."""

        canonical = normalize(identity.canonical_name)
        aliases = sorted({normalize(alias) for alias in identity.aliases} - {canonical})
        return (canonical, *aliases)


@dataclass(frozen=True, slots=True)
class ReferenceData:
    chains: ChainTable
    excluded_categories: frozenset[str] = DEFAULT_EXCLUDED_CATEGORIES

    def is_excluded_category(self, name: str) -> bool:
        normalized = normalize(name)
        return any(normalize(excluded) == normalized for excluded in self.excluded_categories)


# GoldRush-supported networks, most supported first.
DEFAULT_CHAIN_ENTRIES: Final[tuple[ChainEntry, ...]] = (
    ("Ethereum", FOUNDATIONAL, ("eth",)),
    ("Polygon", FOUNDATIONAL, ("matic", "polygon pos")),
    ("BNB Smart Chain", FOUNDATIONAL, ("bsc", "bnb", "binance smart chain", "bnb chain")),
    ("Optimism", FOUNDATIONAL, ("op", "op mainnet")),
    ("Base", FOUNDATIONAL, ()),
    ("Gnosis", FOUNDATIONAL, ("xdai", "gnosis chain")),
    ("Bitcoin", FRONTIER, ("btc",)),
    ("Avalanche C-Chain", FRONTIER, ("avalanche", "avax", "avalanche c chain")),
    ("ApeChain", FRONTIER, ()),
    ("Arbitrum", FRONTIER, ("arbitrum one",)),
    ("Arbitrum Nova", FRONTIER, ()),
    ("Astar", FRONTIER, ()),
    ("Aurora", FRONTIER, ()),
    ("Boba", FRONTIER, ("boba network",)),
    ("Canto", FRONTIER, ()),
    ("Celo", FRONTIER, ()),
    ("Cronos", FRONTIER, ()),
    ("Cronos zkEVM", FRONTIER, ()),
    ("Oasis", FRONTIER, ("oasis sapphire",)),
    ("Manta Pacific", FRONTIER, ("manta",)),
    ("Moonbeam", FRONTIER, ()),
    ("Moonriver", FRONTIER, ()),
    ("Redstone", FRONTIER, ()),
    ("ZetaChain", FRONTIER, ()),
    ("Starknet", FRONTIER, ()),
    ("Solana", FRONTIER, ()),
    ("Polygon zkEVM", FRONTIER, ("polygon zk evm",)),
    ("Blast", COMMUNITY, ()),
    ("Fantom", COMMUNITY, ("ftm",)),
    ("Linea", COMMUNITY, ()),
    ("Mantle", COMMUNITY, ()),
    ("Scroll", COMMUNITY, ()),
    ("zkSync Era", COMMUNITY, ("zksync", "zk sync era")),
    ("Ink", COMMUNITY, ()),
    ("Sei", COMMUNITY, ()),
    ("Unichain", COMMUNITY, ()),
    ("Zora", COMMUNITY, ()),
    ("Taiko", COMMUNITY, ()),
    ("Berachain", COMMUNITY, ()),
    ("World Chain", COMMUNITY, ("worldchain",)),
    ("Harmony", ARCHIVED, ()),
    ("Lisk", ARCHIVED, ()),
    ("Loot Chain", ARCHIVED, ()),
)

DEFAULT_CHAIN_TABLE: Final[ChainTable] = ChainTable.from_entries(DEFAULT_CHAIN_ENTRIES)
DEFAULT_REFERENCE_DATA: Final[ReferenceData] = ReferenceData(chains=DEFAULT_CHAIN_TABLE)
