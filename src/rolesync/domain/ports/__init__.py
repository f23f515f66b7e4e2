"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import MemberPageFetcher
from .persistence import RoleStore

__all__ = ["MemberPageFetcher", "RoleStore"]
