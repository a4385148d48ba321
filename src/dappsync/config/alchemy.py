"""Alchemy dapp store (directory provider) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, ShouldCacheHook

DEFAULT_ALCHEMY_DAPP_STORE_URL = "https://dapp-store.alchemy.com"
ALCHEMY_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True, slots=True)
class AlchemyConfig:
    resilience: ResilienceConfig
    max_pages: int = 20


def get_alchemy_config(*, cache_predicate: ShouldCacheHook | None = None) -> AlchemyConfig:
    base_url = optional_env_var("ALCHEMY_DAPP_STORE_URL", DEFAULT_ALCHEMY_DAPP_STORE_URL)
    return AlchemyConfig(
        resilience=ResilienceConfig(
            name="alchemy",
            base_url=base_url,
            timeout_seconds=ALCHEMY_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
            cache=CacheConfig(backend="sqlite", should_cache=cache_predicate),
        )
    )
