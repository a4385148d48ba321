"""DeFiLlama (analytics provider) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, ShouldCacheHook

DEFAULT_DEFILLAMA_API_URL = "https://api.llama.fi"


@dataclass(frozen=True, slots=True)
class DefiLlamaConfig:
    resilience: ResilienceConfig


def get_defillama_config(*, cache_predicate: ShouldCacheHook | None = None) -> DefiLlamaConfig:
    base_url = optional_env_var("DEFILLAMA_API_URL", DEFAULT_DEFILLAMA_API_URL)
    return DefiLlamaConfig(
        resilience=ResilienceConfig(
            name="defillama",
            base_url=base_url,
            ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
            # The protocol list is several megabytes; keep it for an hour.
            cache=CacheConfig(
                backend="sqlite", default_ttl_seconds=3600.0, should_cache=cache_predicate
            ),
        )
    )
