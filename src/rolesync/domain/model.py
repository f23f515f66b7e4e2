"""Value types shared by the reconciliation core."""

from __future__ import annotations

from dataclasses import dataclass, field

CACHE_KEY_SEPARATOR = ":"


def cache_key(guild_id: str, member_id: str) -> str:
    """Render the composite ``guild:member`` key used in log output."""

    return f"{guild_id}{CACHE_KEY_SEPARATOR}{member_id}"


@dataclass(frozen=True, slots=True)
class RoleRecord:
    """Persisted role assignment for one member of one guild."""

    guild_id: str
    member_id: str
    roles: tuple[str, ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        return (self.guild_id, self.member_id)


@dataclass(frozen=True, slots=True)
class MemberRoleObservation:
    """Roles observed for a member, either from a bulk page or a live notification."""

    guild_id: str
    member_id: str
    roles: tuple[str, ...] = ()


@dataclass(slots=True)
class MemberPage:
    """One page of a guild member listing.

    ``has_more`` is ``None`` when the source gives no explicit continuation signal;
    the pager then falls back to comparing the page length against its limit.
    """

    members: list[MemberRoleObservation] = field(default_factory=list["MemberRoleObservation"])
    has_more: bool | None = None

    def __len__(self) -> int:
        return len(self.members)
