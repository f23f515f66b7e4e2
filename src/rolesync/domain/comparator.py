"""Role set change detection."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def has_changed(cached_roles: Iterable[str] | None, observed_roles: Iterable[str]) -> bool:
    """Return whether ``observed_roles`` must be written to the sink.

    A member that has never been cached always counts as changed, even with no roles,
    so the first observation creates a row. Otherwise role order and duplicates are
    ignored and only a non-empty symmetric difference counts.
    """

    if cached_roles is None:
        return True
    return bool(set(cached_roles) ^ set(observed_roles))
