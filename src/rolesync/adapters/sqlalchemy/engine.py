"""Engine construction for the role store."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool


def create_role_engine(database_uri: str) -> Engine:
    """Create an engine safe to use from worker threads.

    In-memory SQLite databases live per connection, so they get a single shared
    connection that every thread reuses.
    """

    url = make_url(database_uri)
    if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )
    return create_engine(url, future=True)
