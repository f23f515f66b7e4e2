"""Translate decoded gateway dispatches into dispatcher calls."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .schema import GuildMemberRemovePayload, GuildMemberUpdatePayload

if TYPE_CHECKING:
    from rolesync.domain.events import EventDispatcher

log = getLogger(__name__)

GUILD_MEMBER_UPDATE = "GUILD_MEMBER_UPDATE"
GUILD_MEMBER_REMOVE = "GUILD_MEMBER_REMOVE"


async def route_dispatch(event_name: str | None, data: object, dispatcher: EventDispatcher) -> bool:
    """Forward a member dispatch to ``dispatcher``. Returns whether the event was handled."""

    if event_name == GUILD_MEMBER_UPDATE:
        update = GuildMemberUpdatePayload.model_validate(data)
        await dispatcher.on_member_changed(update.guild_id, update.user.id, update.roles)
        return True
    if event_name == GUILD_MEMBER_REMOVE:
        removal = GuildMemberRemovePayload.model_validate(data)
        await dispatcher.on_member_removed(removal.guild_id, removal.user.id)
        return True
    log.debug("Ignoring gateway dispatch %s", event_name)
    return False
