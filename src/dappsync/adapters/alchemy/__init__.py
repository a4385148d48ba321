"""Public interface for the Alchemy dapp store adapter."""

from __future__ import annotations

from .client import AlchemyAPIError, AlchemyClient, should_cache_payload
from .fetcher import AlchemyDirectory
from .schema import DappListResponse, DappPayload
from .translator import directory_record_from_payload

__all__ = [
    "AlchemyAPIError",
    "AlchemyClient",
    "AlchemyDirectory",
    "DappListResponse",
    "DappPayload",
    "directory_record_from_payload",
    "should_cache_payload",
]
