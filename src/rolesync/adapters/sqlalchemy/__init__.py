"""SQLAlchemy adapter package for rolesync."""

from __future__ import annotations

from .engine import create_role_engine
from .mappings import create_all_tables, metadata, user_roles_table
from .repositories import SqlAlchemyRoleStore

__all__ = [
    "SqlAlchemyRoleStore",
    "create_all_tables",
    "create_role_engine",
    "metadata",
    "user_roles_table",
]
