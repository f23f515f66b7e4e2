"""Role store backed by a SQLAlchemy engine."""

from __future__ import annotations

import threading
from contextlib import AbstractContextManager, nullcontext
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, delete, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite

from rolesync.domain.model import RoleRecord

from .mappings import user_roles_table

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.engine import Connection, Engine

log = getLogger(__name__)

_KEY_COLUMNS = ("guild_snowflake", "discord_id")


class SqlAlchemyRoleStore:
    """Blocking role store; each call runs in its own transaction.

    SQLite connections are serialised through a lock since SQLite allows a single
    writer and in-memory databases share one connection across threads.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._lock: AbstractContextManager[object] = (
            threading.Lock() if engine.dialect.name == "sqlite" else nullcontext()
        )

    def load_all(self, guild_ids: Iterable[str]) -> list[RoleRecord]:
        ids = list(guild_ids)
        if not ids:
            return []
        stmt = select(
            user_roles_table.c.guild_snowflake,
            user_roles_table.c.discord_id,
            user_roles_table.c.discord_role,
        ).where(user_roles_table.c.guild_snowflake.in_(ids))
        with self._lock, self.engine.connect() as connection:
            rows = connection.execute(stmt).all()
        return [
            RoleRecord(guild_id=guild, member_id=member, roles=tuple(roles or ()))
            for guild, member, roles in rows
        ]

    def upsert(self, record: RoleRecord) -> None:
        values: dict[str, Any] = {
            "guild_snowflake": record.guild_id,
            "discord_id": record.member_id,
            "discord_role": list(record.roles),
        }
        with self._lock, self.engine.begin() as connection:
            dialect = connection.dialect.name
            if dialect == "sqlite":
                stmt = sqlite.insert(user_roles_table).values(values)
                connection.execute(
                    stmt.on_conflict_do_update(
                        index_elements=list(_KEY_COLUMNS),
                        set_={"discord_role": stmt.excluded.discord_role},
                    )
                )
            elif dialect == "postgresql":
                stmt = postgresql.insert(user_roles_table).values(values)
                connection.execute(
                    stmt.on_conflict_do_update(
                        index_elements=list(_KEY_COLUMNS),
                        set_={"discord_role": stmt.excluded.discord_role},
                    )
                )
            else:
                self._update_or_insert(connection, values)
        log.debug(
            "Upserted %s roles for %s in guild %s",
            len(record.roles),
            record.member_id,
            record.guild_id,
        )

    def delete(self, guild_id: str, member_id: str) -> None:
        stmt = delete(user_roles_table).where(self._key_clause(guild_id, member_id))
        with self._lock, self.engine.begin() as connection:
            connection.execute(stmt)

    def _update_or_insert(self, connection: Connection, values: dict[str, Any]) -> None:
        stmt = (
            update(user_roles_table)
            .where(self._key_clause(values["guild_snowflake"], values["discord_id"]))
            .values(discord_role=values["discord_role"])
        )
        if connection.execute(stmt).rowcount == 0:
            connection.execute(insert(user_roles_table).values(values))

    @staticmethod
    def _key_clause(guild_id: str, member_id: str) -> Any:
        return and_(
            user_roles_table.c.guild_snowflake == guild_id,
            user_roles_table.c.discord_id == member_id,
        )
