"""Routing of live membership notifications into the sink adapter."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .errors import PruneError, SyncError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .sink import RoleSinkAdapter

log = getLogger(__name__)


class EventDispatcher:
    """Fire-and-forget handlers for member change and removal notifications.

    Notifications for guilds that are not configured are ignored. Sink failures are
    logged here and never propagate back to the transport.
    """

    def __init__(self, sink: RoleSinkAdapter, guild_ids: Iterable[str]) -> None:
        self.sink = sink
        self.guild_ids = frozenset(guild_ids)

    async def on_member_changed(self, guild_id: str, member_id: str, roles: Iterable[str]) -> None:
        if not self._accepts(guild_id, member_id):
            return
        try:
            changed = await self.sink.sync_member(guild_id, member_id, roles)
        except SyncError:
            log.exception("Dropped role update for %s in guild %s", member_id, guild_id)
            return
        if changed:
            log.info("Updated roles for %s in guild %s", member_id, guild_id)

    async def on_member_removed(self, guild_id: str, member_id: str) -> None:
        if not self._accepts(guild_id, member_id):
            return
        try:
            await self.sink.remove_member(guild_id, member_id)
        except PruneError:
            log.exception("Dropped removal of %s from guild %s", member_id, guild_id)

    def _accepts(self, guild_id: str, member_id: str) -> bool:
        if guild_id not in self.guild_ids:
            log.debug("Ignoring notification for unconfigured guild %s", guild_id)
            return False
        return bool(member_id)
