"""Application configuration helpers."""

from __future__ import annotations

from .alchemy import AlchemyConfig, get_alchemy_config
from .datocms import DatoCmsConfig, get_datocms_config
from .defillama import DefiLlamaConfig, get_defillama_config
from .env import optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import StorageConfig, get_storage_config
from .sync import SyncConfig, get_sync_config

__all__ = [
    "AlchemyConfig",
    "CacheConfig",
    "ConfigurationError",
    "DatoCmsConfig",
    "DefiLlamaConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "SyncConfig",
    "configure_logging",
    "get_alchemy_config",
    "get_datocms_config",
    "get_defillama_config",
    "get_storage_config",
    "get_sync_config",
    "optional_env_var",
    "require_env_var",
    "require_env_vars",
]
