"""Minimal Pydantic models for Discord REST and gateway payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DiscordBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class UserPayload(DiscordBaseModel):
    id: str
    username: str | None = None
    bot: bool = False


class GuildMemberPayload(DiscordBaseModel):
    user: UserPayload | None = None
    roles: list[str] = Field(default_factory=list)
    nick: str | None = None

    @property
    def member_id(self) -> str:
        return self.user.id if self.user is not None else ""


class GuildMemberUpdatePayload(DiscordBaseModel):
    guild_id: str
    user: UserPayload
    roles: list[str] = Field(default_factory=list)


class GuildMemberRemovePayload(DiscordBaseModel):
    guild_id: str
    user: UserPayload


class HelloPayload(DiscordBaseModel):
    heartbeat_interval: int


class GatewayPayload(DiscordBaseModel):
    op: int
    d: Any = None
    s: int | None = None
    t: str | None = None


class ErrorResponse(DiscordBaseModel):
    code: int = 0
    message: str = ""
