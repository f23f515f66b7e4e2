"""In-memory mirror of the persisted role table."""

from __future__ import annotations

import threading
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .model import RoleRecord

log = getLogger(__name__)


class RoleCache:
    """Last known role set per ``(guild_id, member_id)``.

    The cache is write-through: only ``RoleSinkAdapter`` mutates it, and only after
    the sink has confirmed the write. A lock guards the mapping because store calls
    complete on worker threads while readers run on the event loop.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], frozenset[str]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_records(cls, records: Iterable[RoleRecord], guild_ids: Iterable[str]) -> RoleCache:
        """Seed a cache from persisted rows, keeping only the configured guilds."""

        allowed = set(guild_ids)
        cache = cls()
        skipped = 0
        for record in records:
            if not record.guild_id or not record.member_id or record.guild_id not in allowed:
                skipped += 1
                continue
            cache.set(record.guild_id, record.member_id, record.roles or ())
        log.info("Loaded %s cached role rows (%s skipped)", len(cache), skipped)
        return cache

    def get(self, guild_id: str, member_id: str) -> frozenset[str] | None:
        with self._lock:
            return self._entries.get((guild_id, member_id))

    def set(self, guild_id: str, member_id: str, roles: Iterable[str]) -> None:
        value = frozenset(roles)
        with self._lock:
            self._entries[(guild_id, member_id)] = value

    def delete(self, guild_id: str, member_id: str) -> None:
        with self._lock:
            self._entries.pop((guild_id, member_id), None)

    def keys_for_group(self, guild_id: str) -> list[str]:
        with self._lock:
            return [member for guild, member in self._entries if guild == guild_id]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
