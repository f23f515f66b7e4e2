"""SQLAlchemy table metadata for the persisted role mirror."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Column, MetaData, PrimaryKeyConstraint, String, Table

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

USER_ROLES_TABLE_NAME = "user_roles"

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "pk": "pk_%(table_name)s",
    }
)

# One row per (guild, member); the composite primary key is the uniqueness
# guarantee the in-memory cache mirrors.
user_roles_table = Table(
    USER_ROLES_TABLE_NAME,
    metadata,
    Column("guild_snowflake", String, nullable=False),
    Column("discord_id", String, nullable=False),
    Column("discord_role", JSON, nullable=True),
    PrimaryKeyConstraint("guild_snowflake", "discord_id"),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the role metadata."""

    log.info("Creating role tables")
    metadata.create_all(engine, checkfirst=True)
