from __future__ import annotations

import asyncio
from collections.abc import Callable

import httpx
import pytest

from rolesync.adapters.discord import DiscordAPIError, DiscordMemberFetcher
from rolesync.adapters.http_resilience import ResilienceConfig, ResilientClient
from rolesync.config.discord import DiscordConfig, default_discord_resilience
from rolesync.domain.pager import Pager


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    def factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(resilience, transport=httpx.MockTransport(handler))

    return factory


def _member(member_id: str, *roles: str) -> dict[str, object]:
    return {
        "user": {"id": member_id, "username": f"user{member_id}"},
        "roles": list(roles),
        "nick": None,
        "joined_at": "2024-01-01T00:00:00+00:00",
    }


@pytest.fixture
def discord_config() -> DiscordConfig:
    return DiscordConfig(token="secret", resilience=default_discord_resilience())  # noqa: S106


def test_fetch_page_sends_limit_cursor_and_token(discord_config: DiscordConfig) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[_member("10", "r1", "r2"), {"roles": ["r3"]}])

    fetcher = DiscordMemberFetcher(
        config=discord_config, client_factory=_make_client_factory(handler)
    )

    async def scenario() -> None:
        async with fetcher:
            page = await fetcher.fetch_page("g", "5", limit=1000)
        assert [member.member_id for member in page.members] == ["10", ""]
        assert page.members[0].roles == ("r1", "r2")
        assert page.members[0].guild_id == "g"
        assert page.has_more is None

    asyncio.run(scenario())

    request = seen[0]
    assert request.url.path == "/api/v10/guilds/g/members"
    assert request.url.params["limit"] == "1000"
    assert request.url.params["after"] == "5"
    assert request.headers["Authorization"] == "Bot secret"
    assert request.headers["User-Agent"].startswith("DiscordBot (")


def test_first_page_has_no_cursor(discord_config: DiscordConfig) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    fetcher = DiscordMemberFetcher(
        config=discord_config, client_factory=_make_client_factory(handler)
    )

    async def scenario() -> int:
        async with fetcher:
            return len(await fetcher.fetch_page("g", limit=1000))

    assert asyncio.run(scenario()) == 0
    assert "after" not in seen[0].url.params


def test_pager_walks_discord_pages(discord_config: DiscordConfig) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        after = request.url.params.get("after")
        if after is None:
            return httpx.Response(200, json=[_member("1"), _member("2")])
        if after == "2":
            return httpx.Response(200, json=[_member("3")])
        return httpx.Response(200, json=[])

    fetcher = DiscordMemberFetcher(
        config=discord_config, client_factory=_make_client_factory(handler)
    )

    async def scenario() -> list[str]:
        async with fetcher:
            members = await Pager(fetcher, page_limit=2).fetch_all_members("g")
        return [member.member_id for member in members]

    assert asyncio.run(scenario()) == ["1", "2", "3"]


def test_http_errors_propagate(discord_config: DiscordConfig) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"message": "Missing Access", "code": 50001})

    fetcher = DiscordMemberFetcher(
        config=discord_config, client_factory=_make_client_factory(handler)
    )

    async def scenario() -> None:
        async with fetcher:
            await fetcher.fetch_page("g", limit=1000)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(scenario())


def test_unexpected_payload_raises_api_error(discord_config: DiscordConfig) -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"members": []})

    fetcher = DiscordMemberFetcher(
        config=discord_config, client_factory=_make_client_factory(handler)
    )

    async def scenario() -> None:
        async with fetcher:
            await fetcher.fetch_page("g", limit=1000)

    with pytest.raises(DiscordAPIError):
        asyncio.run(scenario())
