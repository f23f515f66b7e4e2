"""HTTP client for the Discord guild member listing."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import TypeAdapter, ValidationError

from rolesync.adapters.http_resilience import ResilienceConfig, ResilientClient
from rolesync.config.discord import DiscordConfig, get_discord_config
from rolesync.config.sync import DEFAULT_PAGE_LIMIT
from rolesync.domain.model import MemberPage, MemberRoleObservation

from .schema import ErrorResponse, GuildMemberPayload

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from rolesync.domain.ports.fetching import MemberPageFetcher

log = getLogger(__name__)

_MEMBER_LIST = TypeAdapter(list[GuildMemberPayload])


class DiscordAPIError(RuntimeError):
    """Raised when Discord returns a payload the fetcher cannot use."""

    def __init__(self, message: str, *, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def translate_member(guild_id: str, payload: GuildMemberPayload) -> MemberRoleObservation:
    return MemberRoleObservation(
        guild_id=guild_id,
        member_id=payload.member_id,
        roles=tuple(payload.roles),
    )


@dataclass(slots=True)
class DiscordMemberFetcher:
    """Fetch pages of ``GET /guilds/{guild_id}/members``.

    Discord reports no explicit continuation flag, so pages are returned with
    ``has_more=None`` and the pager decides from the page length.
    """

    config: DiscordConfig = field(default_factory=get_discord_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    async def __aenter__(self) -> DiscordMemberFetcher:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_page(
        self,
        guild_id: str,
        after: str | None = None,
        *,
        limit: int = DEFAULT_PAGE_LIMIT,
    ) -> MemberPage:
        params: dict[str, str | int] = {"limit": limit}
        if after:
            params["after"] = after

        response = await self._get_client().get(
            f"/guilds/{guild_id}/members",
            params=httpx.QueryParams(params),
            headers={"Authorization": self.config.authorization},
        )
        if response.is_error:
            self._log_error_payload(guild_id, response)
        response.raise_for_status()

        payload = response.json()
        if not isinstance(payload, list):
            raise DiscordAPIError(f"Unexpected member listing payload for guild {guild_id}")
        try:
            members = _MEMBER_LIST.validate_python(payload)
        except ValidationError as exc:
            raise DiscordAPIError(f"Invalid member payload for guild {guild_id}") from exc

        return MemberPage(members=[translate_member(guild_id, member) for member in members])

    def _get_client(self) -> ResilientClient:
        if self._client is None:
            self._client = self.client_factory(self.config.resilience)
        return self._client

    @staticmethod
    def _log_error_payload(guild_id: str, response: httpx.Response) -> None:
        try:
            error = ErrorResponse.model_validate(response.json())
        except (ValueError, ValidationError):
            log.error(f"Discord API error {response.status_code} for guild {guild_id}")
            return
        log.error(
            f"Discord API error {response.status_code} for guild {guild_id}: "
            f"{error.code} {error.message}"
        )


if TYPE_CHECKING:
    _fetcher_check: MemberPageFetcher = DiscordMemberFetcher()
