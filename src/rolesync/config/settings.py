"""Aggregate application settings."""

from __future__ import annotations

from dataclasses import dataclass

from .discord import DiscordConfig, get_discord_config
from .errors import MissingConfigurationError
from .storage import DatabaseConfig, get_database_config
from .sync import SyncConfig, get_sync_config


@dataclass(frozen=True, slots=True)
class Settings:
    discord: DiscordConfig
    database: DatabaseConfig
    sync: SyncConfig


def get_settings() -> Settings:
    """Load every setting from the environment, reporting all missing names at once."""

    missing: list[str] = []
    discord: DiscordConfig | None = None
    sync: SyncConfig | None = None
    try:
        discord = get_discord_config()
    except MissingConfigurationError as exc:
        missing.append(str(exc))
    try:
        sync = get_sync_config()
    except MissingConfigurationError as exc:
        missing.append(str(exc))
    if missing or discord is None or sync is None:
        raise MissingConfigurationError("; ".join(missing))
    return Settings(discord=discord, database=get_database_config(), sync=sync)
