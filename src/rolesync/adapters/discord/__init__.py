"""Public interface for the Discord adapter."""

from __future__ import annotations

from .client import DiscordAPIError, DiscordMemberFetcher, translate_member
from .gateway import GatewayError, GatewayListener
from .schema import GuildMemberPayload, UserPayload
from .translator import route_dispatch

__all__ = [
    "DiscordAPIError",
    "DiscordMemberFetcher",
    "GatewayError",
    "GatewayListener",
    "GuildMemberPayload",
    "UserPayload",
    "route_dispatch",
    "translate_member",
]
