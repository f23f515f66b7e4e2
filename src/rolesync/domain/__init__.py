"""Reconciliation core: cache, change detection, paging, sync and prune."""

from __future__ import annotations

from .cache import RoleCache
from .comparator import has_changed
from .errors import FetchError, PruneError, RoleSyncError, SyncError
from .events import EventDispatcher
from .model import MemberPage, MemberRoleObservation, RoleRecord, cache_key
from .pager import Pager
from .reconciliation import (
    GuildReconciliation,
    MemberSyncOutcome,
    ReconciliationReport,
    ReconciliationState,
    Reconciler,
    stale_member_ids,
)
from .sink import RoleSinkAdapter

__all__ = [
    "EventDispatcher",
    "FetchError",
    "GuildReconciliation",
    "MemberPage",
    "MemberRoleObservation",
    "MemberSyncOutcome",
    "Pager",
    "PruneError",
    "ReconciliationReport",
    "ReconciliationState",
    "Reconciler",
    "RoleCache",
    "RoleRecord",
    "RoleSinkAdapter",
    "RoleSyncError",
    "SyncError",
    "cache_key",
    "has_changed",
    "stale_member_ids",
]
