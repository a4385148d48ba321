"""Public interface for the DeFiLlama adapter."""

from __future__ import annotations

from .client import DefiLlamaAPIError, DefiLlamaClient, should_cache_payload
from .fetcher import DefiLlamaAnalytics
from .schema import ProtocolPayload, TvlPoint
from .translator import analytics_record_from_payload, chain_tvl, latest_tvl

__all__ = [
    "DefiLlamaAPIError",
    "DefiLlamaAnalytics",
    "DefiLlamaClient",
    "ProtocolPayload",
    "TvlPoint",
    "analytics_record_from_payload",
    "chain_tvl",
    "latest_tvl",
    "should_cache_payload",
]
