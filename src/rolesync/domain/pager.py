"""Cursor pagination over the guild member listing."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from rolesync.config.sync import DEFAULT_PAGE_LIMIT

from .errors import FetchError

if TYPE_CHECKING:
    from .model import MemberPage, MemberRoleObservation
    from .ports.fetching import MemberPageFetcher

log = getLogger(__name__)


class Pager:
    """Drive a ``MemberPageFetcher`` until the guild listing is exhausted.

    The cursor for the next request is the member id of the last item on the
    previous page. Without an explicit ``has_more`` from the fetcher, a page
    shorter than ``page_limit`` marks the end, so ``page_limit`` has to equal the
    source API's maximum page size.
    """

    def __init__(self, fetcher: MemberPageFetcher, *, page_limit: int = DEFAULT_PAGE_LIMIT) -> None:
        if page_limit <= 0:
            raise ValueError("page_limit must be positive")
        self.fetcher = fetcher
        self.page_limit = page_limit

    async def fetch_all_members(self, guild_id: str) -> list[MemberRoleObservation]:
        members: list[MemberRoleObservation] = []
        after: str | None = None
        page_number = 0

        while True:
            page = await self._fetch(guild_id, after)
            page_number += 1
            members.extend(page.members)
            log.debug(
                "Fetched page %s for guild %s: %s members", page_number, guild_id, len(page)
            )

            if not self._has_more(page):
                break

            after = page.members[-1].member_id
            if not after:
                raise FetchError(
                    f"Cannot continue paging guild {guild_id}: last member has no id",
                    guild_id=guild_id,
                )

        log.info("Found %s members in guild %s", len(members), guild_id)
        return members

    async def _fetch(self, guild_id: str, after: str | None) -> MemberPage:
        try:
            return await self.fetcher.fetch_page(guild_id, after, limit=self.page_limit)
        except FetchError:
            raise
        except Exception as exc:
            raise FetchError(
                f"Failed to fetch members for guild {guild_id}: {exc}", guild_id=guild_id
            ) from exc

    def _has_more(self, page: MemberPage) -> bool:
        if not page.members:
            return False
        if page.has_more is not None:
            return page.has_more
        return len(page.members) >= self.page_limit
