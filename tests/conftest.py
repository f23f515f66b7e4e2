from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002

from rolesync.adapters.sqlalchemy import SqlAlchemyRoleStore, create_all_tables, create_role_engine
from rolesync.domain import RoleCache, RoleSinkAdapter
from tests.helpers.fakes import FakeRoleStore

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_role_engine("sqlite+pysqlite:///:memory:")
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sql_store(sqlite_engine: Engine) -> SqlAlchemyRoleStore:
    return SqlAlchemyRoleStore(sqlite_engine)


@pytest.fixture
def fake_store() -> FakeRoleStore:
    return FakeRoleStore()


@pytest.fixture
def cache() -> RoleCache:
    return RoleCache()


@pytest.fixture
def sink(fake_store: FakeRoleStore, cache: RoleCache) -> RoleSinkAdapter:
    return RoleSinkAdapter(fake_store, cache)
