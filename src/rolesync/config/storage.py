"""Location of the role database."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

APP_DIR_NAME: Final[str] = "rolesync"
DEFAULT_DB_FILENAME: Final[str] = "rolesync.db"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """SQLAlchemy URI of the database holding ``user_roles``."""

    uri: str

    @classmethod
    def sqlite_in(cls, data_dir: Path) -> DatabaseConfig:
        """Point at ``rolesync.db`` inside ``data_dir``, creating the directory."""

        data_dir = data_dir.expanduser().resolve()
        data_dir.mkdir(parents=True, exist_ok=True)
        return cls(uri=f"sqlite+pysqlite:///{data_dir / DEFAULT_DB_FILENAME}")


def role_data_dir() -> Path:
    """``ROLESYNC_DATA_DIR``, else ``rolesync`` under the XDG data home."""

    explicit = os.getenv("ROLESYNC_DATA_DIR", "").strip()
    if explicit:
        return Path(explicit)
    xdg_home = os.getenv("XDG_DATA_HOME", "").strip()
    base = Path(xdg_home) if xdg_home else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME


def get_database_config() -> DatabaseConfig:
    uri = os.getenv("DATABASE_URI", "").strip()
    if uri:
        return DatabaseConfig(uri=uri)
    return DatabaseConfig.sqlite_in(role_data_dir())
