from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import dataclass, field

import pytest

from rolesync.domain.cache import RoleCache
from rolesync.domain.errors import FetchError
from rolesync.domain.events import EventDispatcher
from rolesync.domain.model import MemberPage, MemberRoleObservation, RoleRecord
from rolesync.domain.pager import Pager
from rolesync.domain.reconciliation import ReconciliationState, Reconciler, stale_member_ids
from rolesync.domain.sink import RoleSinkAdapter
from tests.helpers.fakes import FakeMemberFetcher, FakeRoleStore, observations, paged


def _reconciler(
    store: FakeRoleStore,
    fetcher: FakeMemberFetcher,
    guild_ids: list[str],
    *,
    page_limit: int = 1000,
) -> tuple[Reconciler, RoleCache]:
    cache = RoleCache.from_records(store.load_all(guild_ids), guild_ids)
    reconciler = Reconciler(
        pager=Pager(fetcher, page_limit=page_limit),
        sink=RoleSinkAdapter(store, cache),
        cache=cache,
        max_concurrency=4,
    )
    return reconciler, cache


def test_prunes_exactly_the_members_that_left() -> None:
    store = FakeRoleStore.with_records(
        RoleRecord("g", "1", ("r1",)),
        RoleRecord("g", "2", ("r1",)),
        RoleRecord("g", "3", ("r1",)),
    )
    fetcher = FakeMemberFetcher(pages={"g": [MemberPage(members=observations("g", ["1", "3"]))]})
    reconciler, cache = _reconciler(store, fetcher, ["g"])

    result = asyncio.run(reconciler.reconcile_guild("g"))

    assert result.state is ReconciliationState.DONE
    assert store.deletes == [("g", "2")]
    assert store.upserts == []
    assert result.unchanged == 2
    assert result.pruned == 1
    assert sorted(cache.keys_for_group("g")) == ["1", "3"]


def test_sync_failure_is_isolated_and_pruning_still_runs() -> None:
    store = FakeRoleStore.with_records(RoleRecord("g", "gone", ("r1",)))
    store.fail_upsert_for.add("x")
    fetcher = FakeMemberFetcher(
        pages={"g": [MemberPage(members=observations("g", ["x", "y", "z"]))]}
    )
    reconciler, cache = _reconciler(store, fetcher, ["g"])

    result = asyncio.run(reconciler.reconcile_guild("g"))

    assert result.state is ReconciliationState.DONE
    assert result.sync_failures == 1
    assert result.written == 2
    assert {record.member_id for record in store.upserts} == {"y", "z"}
    assert store.deletes == [("g", "gone")]
    assert cache.get("g", "x") is None
    assert sorted(cache.keys_for_group("g")) == ["y", "z"]


def test_empty_guild_prunes_every_cached_member() -> None:
    store = FakeRoleStore.with_records(*(RoleRecord("g", str(i), ("r",)) for i in range(5)))
    reconciler, cache = _reconciler(store, FakeMemberFetcher(), ["g"])

    result = asyncio.run(reconciler.reconcile_guild("g"))

    assert result.state is ReconciliationState.DONE
    assert result.fetched == 0
    assert result.pruned == 5
    assert cache.keys_for_group("g") == []
    assert store.rows == {}


def test_prune_failure_is_counted_and_others_continue() -> None:
    store = FakeRoleStore.with_records(RoleRecord("g", "1", ()), RoleRecord("g", "2", ()))
    store.fail_delete_for.add("1")
    reconciler, cache = _reconciler(store, FakeMemberFetcher(), ["g"])

    result = asyncio.run(reconciler.reconcile_guild("g"))

    assert result.state is ReconciliationState.DONE
    assert result.prune_failures == 1
    assert result.pruned == 1
    assert cache.keys_for_group("g") == ["1"]


def test_members_without_id_are_not_synced_and_do_not_shield_pruning() -> None:
    store = FakeRoleStore.with_records(RoleRecord("g", "1", ()))
    page = MemberPage(
        members=[
            MemberRoleObservation(guild_id="g", member_id="", roles=("r",)),
            MemberRoleObservation(guild_id="g", member_id="2", roles=("r",)),
        ]
    )
    reconciler, _ = _reconciler(store, FakeMemberFetcher(pages={"g": [page]}), ["g"])

    result = asyncio.run(reconciler.reconcile_guild("g"))

    assert result.fetched == 2
    assert [record.member_id for record in store.upserts] == ["2"]
    assert store.deletes == [("g", "1")]


def test_fetch_failure_marks_guild_failed_and_next_guild_runs() -> None:
    store = FakeRoleStore.with_records(RoleRecord("bad", "1", ("r",)), RoleRecord("ok", "1", ()))
    fetcher = FakeMemberFetcher(
        pages={"ok": [MemberPage(members=observations("ok", ["2"]))]},
        errors={"bad": TimeoutError("slow")},
    )
    reconciler, cache = _reconciler(store, fetcher, ["bad", "ok"])

    report = asyncio.run(reconciler.reconcile_all(["bad", "ok"]))

    bad, ok = report.guilds
    assert bad.state is ReconciliationState.FAILED
    assert isinstance(bad.error, FetchError)
    assert cache.keys_for_group("bad") == ["1"]
    assert ok.state is ReconciliationState.DONE
    assert ok.pruned == 1
    assert report.failed_guilds == ["bad"]
    assert report.succeeded is False


def test_second_pass_writes_nothing_when_roles_are_stable() -> None:
    store = FakeRoleStore()
    members = observations("g", ["1", "2"], roles=("a", "b"))
    fetcher = FakeMemberFetcher(
        pages={"g": [MemberPage(members=list(members)), MemberPage(members=list(members))]}
    )
    reconciler, _ = _reconciler(store, fetcher, ["g"])

    first = asyncio.run(reconciler.reconcile_guild("g"))
    second = asyncio.run(reconciler.reconcile_guild("g"))

    assert first.written == 2
    assert second.written == 0
    assert second.unchanged == 2
    assert len(store.upserts) == 2


def test_new_members_are_never_pruned_in_the_same_pass() -> None:
    store = FakeRoleStore()
    fetcher = FakeMemberFetcher(
        pages={"g": [MemberPage(members=observations("g", [str(i) for i in range(50)]))]}
    )
    reconciler, cache = _reconciler(store, fetcher, ["g"])

    result = asyncio.run(reconciler.reconcile_guild("g"))

    assert result.written == 50
    assert result.pruned == 0
    assert len(cache.keys_for_group("g")) == 50


def test_max_concurrency_must_be_positive() -> None:
    cache = RoleCache()
    with pytest.raises(ValueError, match="max_concurrency"):
        Reconciler(
            pager=Pager(FakeMemberFetcher()),
            sink=RoleSinkAdapter(FakeRoleStore(), cache),
            cache=cache,
            max_concurrency=0,
        )


@dataclass
class _SlowRoleStore(FakeRoleStore):
    active: int = 0
    peak: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock)

    def upsert(self, record: RoleRecord) -> None:
        with self.lock:
            self.active += 1
            self.peak = max(self.peak, self.active)
        time.sleep(0.01)
        with self.lock:
            self.active -= 1
            super().upsert(record)


def test_member_writes_respect_max_concurrency() -> None:
    store = _SlowRoleStore()
    fetcher = FakeMemberFetcher(pages={"g": paged("g", [20])})
    cache = RoleCache()
    reconciler = Reconciler(
        pager=Pager(fetcher),
        sink=RoleSinkAdapter(store, cache),
        cache=cache,
        max_concurrency=3,
    )

    result = asyncio.run(reconciler.reconcile_guild("g"))

    assert result.written == 20
    assert 1 <= store.peak <= 3


@dataclass
class _JoinDuringFetch(FakeMemberFetcher):
    """Delivers a live role update for a new member while the listing is in flight."""

    dispatcher: EventDispatcher | None = None

    async def fetch_page(
        self,
        guild_id: str,
        after: str | None = None,
        *,
        limit: int,
    ) -> MemberPage:
        if self.dispatcher is not None and not self.calls:
            await self.dispatcher.on_member_changed(guild_id, "joined", ["r"])
        return await super().fetch_page(guild_id, after, limit=limit)


def test_member_updated_live_during_fetch_is_not_pruned() -> None:
    store = FakeRoleStore.with_records(
        RoleRecord("g", "1", ("r1",)), RoleRecord("g", "left", ("r1",))
    )
    fetcher = _JoinDuringFetch(pages={"g": [MemberPage(members=observations("g", ["1"]))]})
    reconciler, cache = _reconciler(store, fetcher, ["g"])
    fetcher.dispatcher = EventDispatcher(reconciler.sink, ["g"])

    result = asyncio.run(reconciler.reconcile_guild("g"))

    assert store.deletes == [("g", "left")]
    assert result.pruned == 1
    assert cache.get("g", "joined") == frozenset({"r"})
    assert store.rows[("g", "joined")] == ("r",)


def test_stale_member_ids_limited_to_baseline() -> None:
    cache = RoleCache()
    for member_id in ("1", "2", "late"):
        cache.set("g", member_id, ("r",))

    assert stale_member_ids(cache, "g", ["1"]) == {"2", "late"}
    assert stale_member_ids(cache, "g", ["1"], baseline=["1", "2"]) == {"2"}
