"""Errors raised by the reconciliation core."""

from __future__ import annotations


class RoleSyncError(RuntimeError):
    """Base class for reconciliation failures."""


class FetchError(RoleSyncError):
    """Raised when the member listing for a guild cannot be fetched."""

    def __init__(self, message: str, *, guild_id: str) -> None:
        super().__init__(message)
        self.guild_id = guild_id


class SyncError(RoleSyncError):
    """Raised when the sink rejects an upsert for one member."""

    def __init__(self, message: str, *, guild_id: str, member_id: str) -> None:
        super().__init__(message)
        self.guild_id = guild_id
        self.member_id = member_id


class PruneError(RoleSyncError):
    """Raised when the sink rejects a delete for one member."""

    def __init__(self, message: str, *, guild_id: str, member_id: str) -> None:
        super().__init__(message)
        self.guild_id = guild_id
        self.member_id = member_id
