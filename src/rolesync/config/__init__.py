"""Application configuration helpers."""

from __future__ import annotations

from .discord import (
    DISCORD_API_BASE_URL,
    DISCORD_GATEWAY_URL,
    DiscordConfig,
    default_discord_resilience,
    get_discord_config,
)
from .env import require_env_var, require_env_vars, split_env_list
from .errors import ConfigurationError, InvalidConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .settings import Settings, get_settings
from .storage import DatabaseConfig, get_database_config, role_data_dir
from .sync import (
    DEFAULT_PAGE_LIMIT,
    DEFAULT_SYNC_CONCURRENCY,
    SyncConfig,
    SyncMode,
    get_sync_config,
    parse_sync_mode,
)

__all__ = [
    "DEFAULT_PAGE_LIMIT",
    "DEFAULT_SYNC_CONCURRENCY",
    "DISCORD_API_BASE_URL",
    "DISCORD_GATEWAY_URL",
    "ConfigurationError",
    "InvalidConfigurationError",
    "DatabaseConfig",
    "DiscordConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "Settings",
    "SyncConfig",
    "SyncMode",
    "configure_logging",
    "default_discord_resilience",
    "get_database_config",
    "get_discord_config",
    "get_settings",
    "get_sync_config",
    "parse_sync_mode",
    "require_env_var",
    "require_env_vars",
    "role_data_dir",
    "split_env_list",
]
