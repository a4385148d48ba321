"""HTTP client for the Alchemy dapp store."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from dappsync.adapters.http_resilience import ResilientClient
from dappsync.domain.ports import ProviderError

from .schema import DappListResponse, DappPayload

if TYPE_CHECKING:
    from collections.abc import Callable

    from dappsync.config.alchemy import AlchemyConfig
    from dappsync.config.http_resilience import ResilienceConfig

log = getLogger(__name__)


def should_cache_payload(payload: object) -> bool:
    """Only dapp listings and dapp details are cached; error documents are not."""

    if not isinstance(payload, dict):
        return False
    return "records" in payload or "slug" in payload or "name" in payload


class AlchemyAPIError(ProviderError):
    """Raised when the dapp store is unreachable or returns an unexpected payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AlchemyClient:
    def __init__(
        self,
        *,
        config: AlchemyConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    def list_dapps(self, page: int) -> DappListResponse:
        return asyncio.run(self._list_dapps_async(page))

    def get_dapp(self, slug: str) -> DappPayload | None:
        return asyncio.run(self._get_dapp_async(slug))

    async def _list_dapps_async(self, page: int) -> DappListResponse:
        async with self._client_factory(self._resilience) as client:
            payload = await self._perform_request(client, "/dapps", params={"page": str(page)})
        if payload is None:
            return DappListResponse()
        try:
            return DappListResponse.model_validate(payload)
        except ValidationError as exc:
            raise AlchemyAPIError(f"Unexpected dapp listing payload on page {page}") from exc

    async def _get_dapp_async(self, slug: str) -> DappPayload | None:
        async with self._client_factory(self._resilience) as client:
            payload = await self._perform_request(client, f"/dapps/{slug}")
        if payload is None:
            return None
        try:
            return DappPayload.model_validate(payload)
        except ValidationError as exc:
            raise AlchemyAPIError(f"Unexpected dapp detail payload for {slug!r}") from exc

    async def _perform_request(
        self,
        client: ResilientClient,
        path: str,
        *,
        params: dict[str, str] | None = None,
    ) -> object:
        try:
            response = await client.get(path, params=params)
        except httpx.HTTPError as exc:
            raise AlchemyAPIError(f"Dapp store request {path} failed: {exc}") from exc

        if response.status_code == httpx.codes.NOT_FOUND:
            log.debug("Dapp store %s -> 404", path)
            return None
        if response.is_error:
            message = f"Dapp store {path} -> {response.status_code}"
            log.error(message)
            raise AlchemyAPIError(message, status_code=response.status_code)
        payload = response.json()
        if not isinstance(payload, dict):
            raise AlchemyAPIError(f"Unexpected dapp store payload for {path}")
        return payload
