"""HTTP client for the DeFiLlama API."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import TypeAdapter, ValidationError

from dappsync.adapters.http_resilience import ResilientClient
from dappsync.domain.ports import ProviderError

from .schema import ProtocolPayload

if TYPE_CHECKING:
    from collections.abc import Callable

    from dappsync.config.defillama import DefiLlamaConfig
    from dappsync.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

_PROTOCOL_LIST = TypeAdapter(list[ProtocolPayload])
# Unknown slugs come back as 400 rather than 404.
_MISSING_STATUSES = frozenset({httpx.codes.NOT_FOUND, httpx.codes.BAD_REQUEST})


def should_cache_payload(payload: object) -> bool:
    """Cache protocol lists and protocol details, never error documents."""

    if isinstance(payload, list):
        return True
    return isinstance(payload, dict) and "name" in payload and "statusCode" not in payload


class DefiLlamaAPIError(ProviderError):
    """Raised when DeFiLlama is unreachable or returns an unexpected payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DefiLlamaClient:
    def __init__(
        self,
        *,
        config: DefiLlamaConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    def list_protocols(self) -> list[ProtocolPayload]:
        return asyncio.run(self._list_protocols_async())

    def get_protocol(self, slug: str) -> ProtocolPayload | None:
        return asyncio.run(self._get_protocol_async(slug))

    async def _list_protocols_async(self) -> list[ProtocolPayload]:
        async with self._client_factory(self._resilience) as client:
            payload = await self._perform_request(client, "/protocols")
        if payload is None:
            return []
        try:
            protocols = _PROTOCOL_LIST.validate_python(payload)
        except ValidationError as exc:
            raise DefiLlamaAPIError("Unexpected DeFiLlama protocol list payload") from exc
        log.debug("Loaded %d DeFiLlama protocol(s)", len(protocols))
        return protocols

    async def _get_protocol_async(self, slug: str) -> ProtocolPayload | None:
        async with self._client_factory(self._resilience) as client:
            payload = await self._perform_request(client, f"/protocol/{slug}")
        if payload is None:
            return None
        try:
            return ProtocolPayload.model_validate(payload)
        except ValidationError as exc:
            raise DefiLlamaAPIError(f"Unexpected DeFiLlama payload for {slug!r}") from exc

    async def _perform_request(self, client: ResilientClient, path: str) -> object:
        try:
            response = await client.get(path)
        except httpx.HTTPError as exc:
            raise DefiLlamaAPIError(f"DeFiLlama request {path} failed: {exc}") from exc

        if response.status_code in _MISSING_STATUSES:
            log.debug("DeFiLlama %s -> %d", path, response.status_code)
            return None
        if response.is_error:
            message = f"DeFiLlama {path} -> {response.status_code}"
            log.error(message)
            raise DefiLlamaAPIError(message, status_code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise DefiLlamaAPIError(f"DeFiLlama {path} returned invalid JSON") from exc
