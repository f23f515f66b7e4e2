"""Ports for fetching guild membership from the source service."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from rolesync.domain.model import MemberPage


@runtime_checkable
class MemberPageFetcher(Protocol):
    """Bulk-read port returning one page of members after an optional cursor."""

    async def fetch_page(
        self,
        guild_id: str,
        after: str | None = None,
        *,
        limit: int,
    ) -> MemberPage: ...


__all__ = ["MemberPageFetcher"]
