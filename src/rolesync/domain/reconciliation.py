"""Per-guild reconciliation: fetch, sync every member, prune members who left."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from rolesync.config.sync import DEFAULT_SYNC_CONCURRENCY

from .errors import FetchError, PruneError, SyncError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from .cache import RoleCache
    from .model import MemberRoleObservation
    from .pager import Pager
    from .sink import RoleSinkAdapter

log = getLogger(__name__)


class ReconciliationState(StrEnum):
    FETCHING = "fetching"
    SYNCING = "syncing"
    PRUNING = "pruning"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class MemberSyncOutcome:
    member_id: str
    changed: bool = False
    error: SyncError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class GuildReconciliation:
    """Outcome of one reconciliation pass for a guild."""

    guild_id: str
    state: ReconciliationState = ReconciliationState.FETCHING
    fetched: int = 0
    written: int = 0
    unchanged: int = 0
    sync_failures: int = 0
    pruned: int = 0
    prune_failures: int = 0
    error: FetchError | None = None


@dataclass(slots=True)
class ReconciliationReport:
    guilds: list[GuildReconciliation] = field(default_factory=list["GuildReconciliation"])

    @property
    def failed_guilds(self) -> list[str]:
        return [
            result.guild_id
            for result in self.guilds
            if result.state is ReconciliationState.FAILED
        ]

    @property
    def succeeded(self) -> bool:
        return not self.failed_guilds


def stale_member_ids(
    cache: RoleCache,
    guild_id: str,
    observed_ids: Iterable[str],
    *,
    baseline: Iterable[str] | None = None,
) -> set[str]:
    """Cached members of ``guild_id`` that are absent from ``observed_ids``.

    With ``baseline``, only members that were already cached when the listing
    started are candidates, so rows written by live notifications during the
    fetch survive.
    """

    stale = set(cache.keys_for_group(guild_id)) - set(observed_ids)
    if baseline is not None:
        stale &= set(baseline)
    return stale


class Reconciler:
    def __init__(
        self,
        *,
        pager: Pager,
        sink: RoleSinkAdapter,
        cache: RoleCache,
        max_concurrency: int = DEFAULT_SYNC_CONCURRENCY,
    ) -> None:
        if max_concurrency <= 0:
            raise ValueError("max_concurrency must be positive")
        self.pager = pager
        self.sink = sink
        self.cache = cache
        self.max_concurrency = max_concurrency

    async def reconcile_all(self, guild_ids: Sequence[str]) -> ReconciliationReport:
        log.info("Starting sync for %s guild(s)...", len(guild_ids))
        report = ReconciliationReport()
        for guild_id in guild_ids:
            report.guilds.append(await self.reconcile_guild(guild_id))
        log.info(
            "Sync complete: %s guild(s) reconciled, %s failed",
            len(report.guilds) - len(report.failed_guilds),
            len(report.failed_guilds),
        )
        return report

    async def reconcile_guild(self, guild_id: str) -> GuildReconciliation:
        log.info("Syncing guild: %s", guild_id)
        result = GuildReconciliation(guild_id=guild_id)
        cached_before_fetch = self.cache.keys_for_group(guild_id)

        try:
            members = await self.pager.fetch_all_members(guild_id)
        except FetchError as exc:
            log.error(f"Skipping guild {guild_id}: {exc}")
            result.state = ReconciliationState.FAILED
            result.error = exc
            return result
        result.fetched = len(members)

        result.state = ReconciliationState.SYNCING
        observed = [member for member in members if member.member_id]
        outcomes = await self._sync_members(guild_id, observed)
        for outcome in outcomes:
            if not outcome.ok:
                result.sync_failures += 1
            elif outcome.changed:
                result.written += 1
            else:
                result.unchanged += 1
        if result.sync_failures:
            log.error(f"Failed to sync {result.sync_failures} members in guild {guild_id}")

        # Only members cached before the listing started can be pruned.
        result.state = ReconciliationState.PRUNING
        stale = stale_member_ids(
            self.cache,
            guild_id,
            (member.member_id for member in observed),
            baseline=cached_before_fetch,
        )
        for member_id in sorted(stale):
            try:
                await self.sink.remove_member(guild_id, member_id)
            except PruneError:
                result.prune_failures += 1
                continue
            result.pruned += 1

        result.state = ReconciliationState.DONE
        log.info(
            "Guild %s reconciled: fetched=%s, written=%s, unchanged=%s, sync_failures=%s, "
            "pruned=%s, prune_failures=%s",
            guild_id,
            result.fetched,
            result.written,
            result.unchanged,
            result.sync_failures,
            result.pruned,
            result.prune_failures,
        )
        return result

    async def _sync_members(
        self,
        guild_id: str,
        members: Sequence[MemberRoleObservation],
    ) -> list[MemberSyncOutcome]:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def sync_one(member: MemberRoleObservation) -> MemberSyncOutcome:
            async with semaphore:
                try:
                    changed = await self.sink.sync_member(guild_id, member.member_id, member.roles)
                except SyncError as exc:
                    return MemberSyncOutcome(member_id=member.member_id, error=exc)
            return MemberSyncOutcome(member_id=member.member_id, changed=changed)

        return list(await asyncio.gather(*(sync_one(member) for member in members)))
