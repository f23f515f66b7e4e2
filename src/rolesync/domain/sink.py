"""Write-through access to the role sink."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from .comparator import has_changed
from .errors import PruneError, SyncError
from .model import RoleRecord, cache_key

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .cache import RoleCache
    from .ports.persistence import RoleStore

log = getLogger(__name__)


class RoleSinkAdapter:
    """The only mutation path into ``RoleCache``.

    Every write goes to the store first; the cache is updated only once the store
    call has returned. A failed store call leaves the cache at its last confirmed
    state and is re-raised to the caller as ``SyncError`` or ``PruneError``.
    """

    def __init__(self, store: RoleStore, cache: RoleCache) -> None:
        self.store = store
        self.cache = cache

    async def sync_member(self, guild_id: str, member_id: str, roles: Iterable[str]) -> bool:
        """Persist ``roles`` if they differ from the cache. Returns whether a write happened."""

        observed = tuple(roles)
        if not has_changed(self.cache.get(guild_id, member_id), observed):
            return False

        record = RoleRecord(guild_id=guild_id, member_id=member_id, roles=observed)
        try:
            await asyncio.to_thread(self.store.upsert, record)
        except Exception as exc:
            log.error(f"Failed to upsert roles for {member_id} in guild {guild_id}: {exc}")
            raise SyncError(
                f"Upsert failed for {cache_key(guild_id, member_id)}",
                guild_id=guild_id,
                member_id=member_id,
            ) from exc

        self.cache.set(guild_id, member_id, observed)
        return True

    async def remove_member(self, guild_id: str, member_id: str) -> None:
        try:
            await asyncio.to_thread(self.store.delete, guild_id, member_id)
        except Exception as exc:
            log.error(f"Failed to remove roles for {member_id} in guild {guild_id}: {exc}")
            raise PruneError(
                f"Delete failed for {cache_key(guild_id, member_id)}",
                guild_id=guild_id,
                member_id=member_id,
            ) from exc

        self.cache.delete(guild_id, member_id)
        log.info("Removed %s from guild %s", member_id, guild_id)
