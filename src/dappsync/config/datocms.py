"""DatoCMS record store configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_DATOCMS_BASE_URL = "https://site-api.datocms.com"
DATOCMS_API_VERSION = "3"
DEFAULT_DAPP_MODEL = "dapp"
DEFAULT_CHAIN_MODEL = "chain"


@dataclass(frozen=True, slots=True)
class DatoCmsConfig:
    """Holds the content store credentials and model names."""

    api_token: str
    dapp_model: str
    chain_model: str
    resilience: ResilienceConfig


def get_datocms_config(*, resilience: ResilienceConfig | None = None) -> DatoCmsConfig:
    values = require_env_vars(("DATOCMS_API_TOKEN",))
    token = values["DATOCMS_API_TOKEN"]
    base_url = optional_env_var("DATOCMS_BASE_URL", DEFAULT_DATOCMS_BASE_URL)
    return DatoCmsConfig(
        api_token=token,
        dapp_model=optional_env_var("DATOCMS_DAPP_MODEL", DEFAULT_DAPP_MODEL),
        chain_model=optional_env_var("DATOCMS_CHAIN_MODEL", DEFAULT_CHAIN_MODEL),
        resilience=resilience
        or ResilienceConfig(
            name="datocms",
            base_url=base_url,
            # Mutations are not idempotent; only reads are retried.
            retry=RetryPolicy(total=3),
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            cache=None,
            default_headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
                "Content-Type": "application/vnd.api+json",
                "X-Api-Version": DATOCMS_API_VERSION,
            },
        ),
    )
