"""Mock HTTP plumbing for adapter tests."""

from __future__ import annotations

from collections.abc import Callable  # noqa: TC003

import httpx

from dappsync.adapters.http_resilience import ResilienceConfig, ResilientClient


def make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
            transport=httpx.MockTransport(async_handler),
            base_url=resilience.base_url or "https://testserver",
            headers=dict(resilience.default_headers or {}),
        )
        return client

    return factory


def resilience_config(name: str, base_url: str, **headers: str) -> ResilienceConfig:
    return ResilienceConfig(
        name=name,
        base_url=base_url,
        ratelimit=None,
        cache=None,
        default_headers=headers or None,
    )
