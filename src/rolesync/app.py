"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import AsyncExitStack
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from rolesync.adapters.discord import DiscordMemberFetcher, GatewayListener
from rolesync.adapters.sqlalchemy import (
    SqlAlchemyRoleStore,
    create_all_tables,
    create_role_engine,
)
from rolesync.config.sync import SyncMode
from rolesync.domain import (
    EventDispatcher,
    Pager,
    ReconciliationReport,
    Reconciler,
    RoleCache,
    RoleSinkAdapter,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from sqlalchemy.engine import Engine

    from rolesync.config.discord import DiscordConfig
    from rolesync.config.settings import Settings
    from rolesync.domain.ports import MemberPageFetcher, RoleStore

log = getLogger(__name__)


class Listener(Protocol):
    async def run(self) -> None: ...


ListenerFactory = Callable[..., Listener]


def _default_listener_factory(
    config: DiscordConfig,
    dispatcher: EventDispatcher,
    *,
    on_ready: Callable[[], Awaitable[object]],
) -> Listener:
    return GatewayListener(config, dispatcher, on_ready=on_ready)


def build_sql_store(database_uri: str) -> tuple[SqlAlchemyRoleStore, Engine]:
    engine = create_role_engine(database_uri)
    create_all_tables(engine)
    return SqlAlchemyRoleStore(engine), engine


async def load_cache(store: RoleStore, guild_ids: tuple[str, ...]) -> RoleCache:
    records = await asyncio.to_thread(store.load_all, guild_ids)
    return RoleCache.from_records(records, guild_ids)


def run_sync(
    settings: Settings,
    *,
    fetcher: MemberPageFetcher | None = None,
    store: RoleStore | None = None,
    listener_factory: ListenerFactory | None = None,
) -> ReconciliationReport:
    """Reconcile every configured guild, then keep listening in continuous mode."""

    return asyncio.run(
        run_sync_async(
            settings,
            fetcher=fetcher,
            store=store,
            listener_factory=listener_factory,
        )
    )


async def run_sync_async(
    settings: Settings,
    *,
    fetcher: MemberPageFetcher | None = None,
    store: RoleStore | None = None,
    listener_factory: ListenerFactory | None = None,
) -> ReconciliationReport:
    sync = settings.sync
    engine: Engine | None = None
    if store is None:
        store, engine = build_sql_store(settings.database.uri)

    try:
        async with AsyncExitStack() as stack:
            if fetcher is None:
                fetcher = await stack.enter_async_context(
                    DiscordMemberFetcher(config=settings.discord)
                )

            cache = await load_cache(store, sync.guild_ids)
            sink = RoleSinkAdapter(store, cache)
            reconciler = Reconciler(
                pager=Pager(fetcher, page_limit=sync.page_limit),
                sink=sink,
                cache=cache,
                max_concurrency=sync.max_concurrency,
            )

            if sync.mode is SyncMode.BATCH:
                report = await reconciler.reconcile_all(sync.guild_ids)
                log.info("Sync complete! Exiting.")
                return report

            report = ReconciliationReport()

            async def on_ready() -> None:
                result = await reconciler.reconcile_all(sync.guild_ids)
                report.guilds.extend(result.guilds)
                log.info("Initial sync complete, listening for member updates")

            dispatcher = EventDispatcher(sink, sync.guild_ids)
            factory = listener_factory or _default_listener_factory
            await factory(settings.discord, dispatcher, on_ready=on_ready).run()
            return report
    finally:
        if engine is not None:
            engine.dispose()
