"""Translate DeFiLlama protocol payloads into analytics records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from dappsync.domain.model import AnalyticsRecord

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .schema import ProtocolPayload

# Breakdown buckets reported next to the real chains.
NON_CHAIN_KEYS: Final = frozenset(
    {
        "staking",
        "pool2",
        "borrowed",
        "vesting",
        "offers",
        "treasury",
        "doublecounted",
        "liquidstaking",
        "dcandlsoverlap",
    }
)


def analytics_record_from_payload(
    payload: ProtocolPayload, *, protocol_id: str | None = None
) -> AnalyticsRecord:
    return AnalyticsRecord(
        protocol_id=protocol_id or payload.slug,
        name=payload.name,
        tvl_usd=latest_tvl(payload),
        category=payload.category,
        chain_tvl=chain_tvl(payload),
        url=payload.url,
        twitter=payload.twitter,
        github=_first_github(payload.github),
        description=payload.description,
        change_1d=payload.change_1d,
        change_7d=payload.change_7d,
        change_1m=payload.change_1m,
        market_cap=payload.mcap,
        token_price=payload.token_price,
        token_symbol=payload.symbol,
        fdv=payload.fdv,
    )


def latest_tvl(payload: ProtocolPayload) -> float | None:
    """Current TVL: the number itself, or the last point of a daily history."""

    tvl = payload.tvl
    if isinstance(tvl, list):
        if not tvl:
            return None
        return tvl[-1].total_liquidity_usd
    return tvl


def chain_tvl(payload: ProtocolPayload) -> dict[str, float]:
    """Per-chain TVL with breakdown buckets and zero entries removed."""

    source: Mapping[str, object] = (
        payload.current_chain_tvls if payload.current_chain_tvls is not None else payload.chain_tvls
    )
    result: dict[str, float] = {}
    for chain, value in source.items():
        if not is_chain_key(chain):
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            continue
        result[chain] = float(value)
    return result


def is_chain_key(key: str) -> bool:
    # Composite keys such as "Ethereum-staking" are breakdowns of a chain.
    return "-" not in key and key.lower() not in NON_CHAIN_KEYS


def _first_github(value: list[str] | str | None) -> str | None:
    if isinstance(value, list):
        return next((entry.strip() for entry in value if entry.strip()), None)
    if value is not None and value.strip():
        return value.strip()
    return None
