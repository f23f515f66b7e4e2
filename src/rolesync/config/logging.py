"""Logging setup for the rolesync CLI."""

from __future__ import annotations

import logging

# Third-party loggers that log every request or frame at INFO/DEBUG.
_CHATTY_LOGGERS = ("httpx", "httpcore", "websockets")


def configure_logging(*, level: int | str = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger with a terse CLI format.

    ``level`` accepts a level number or name. Transport libraries are held at
    WARNING unless DEBUG is requested, so per-page requests do not drown out the
    reconciliation summary. Pass ``force=True`` to reconfigure during tests.
    """

    resolved = logging.getLevelName(level.upper()) if isinstance(level, str) else level
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")

    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if resolved <= logging.DEBUG else logging.WARNING)
