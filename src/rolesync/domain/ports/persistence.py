"""Ports for persisting role assignments."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rolesync.domain.model import RoleRecord


@runtime_checkable
class RoleStore(Protocol):
    """Persistence contract for the role table.

    Implementations are blocking; the core calls them from worker threads. Any
    exception signals a failed mutation and leaves the cache untouched.
    """

    def load_all(self, guild_ids: Iterable[str]) -> list[RoleRecord]: ...

    def upsert(self, record: RoleRecord) -> None: ...

    def delete(self, guild_id: str, member_id: str) -> None: ...


__all__ = ["RoleStore"]
