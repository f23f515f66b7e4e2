"""Reconciliation defaults and guild selection."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum

from .env import optional_positive_int, require_env_vars, split_env_list
from .errors import InvalidConfigurationError, MissingConfigurationError

# Discord's maximum page size for the member listing endpoint. The pager treats a
# shorter page as the last one, so this must match the API maximum exactly.
DEFAULT_PAGE_LIMIT = 1000
DEFAULT_SYNC_CONCURRENCY = 16


class SyncMode(StrEnum):
    BATCH = "batch"
    CONTINUOUS = "continuous"


@dataclass(frozen=True, slots=True)
class SyncConfig:
    guild_ids: tuple[str, ...]
    mode: SyncMode = SyncMode.BATCH
    page_limit: int = DEFAULT_PAGE_LIMIT
    max_concurrency: int = DEFAULT_SYNC_CONCURRENCY


def parse_sync_mode(value: str) -> SyncMode:
    try:
        return SyncMode(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(mode.value for mode in SyncMode)
        raise InvalidConfigurationError("ROLESYNC_MODE", value, f"expected one of {choices}") from exc


def get_sync_config() -> SyncConfig:
    values = require_env_vars(("GUILD_SNOWFLAKES",))
    guild_ids = split_env_list(values["GUILD_SNOWFLAKES"])
    if not guild_ids:
        raise MissingConfigurationError(
            "Missing configuration for: GUILD_SNOWFLAKES (comma-separated guild IDs)"
        )
    raw_mode = os.getenv("ROLESYNC_MODE")
    mode = parse_sync_mode(raw_mode) if raw_mode and raw_mode.strip() else SyncMode.BATCH
    return SyncConfig(
        guild_ids=guild_ids,
        mode=mode,
        max_concurrency=optional_positive_int(
            "ROLESYNC_SYNC_CONCURRENCY", DEFAULT_SYNC_CONCURRENCY
        ),
    )
