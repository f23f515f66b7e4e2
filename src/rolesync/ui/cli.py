from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from rolesync.app import run_sync
from rolesync.config import (
    ConfigurationError,
    configure_logging,
    get_settings,
    parse_sync_mode,
)
from rolesync.config.env import split_env_list

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from rolesync.config.settings import Settings

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Mirror Discord guild roles into the database")
    parser.add_argument(
        "--mode",
        type=str,
        choices=("batch", "continuous"),
        help="Exit after reconciling (batch) or keep serving member updates (continuous)",
    )
    parser.add_argument(
        "--guild",
        action="append",
        dest="guilds",
        metavar="GUILD_ID",
        help="Guild id to reconcile; repeat or comma-separate (overrides GUILD_SNOWFLAKES)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        help="Maximum concurrent member writes per guild (defaults to config)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level (default: %(default)s)",
    )
    return parser.parse_args(list(argv))


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    sync = settings.sync
    if args.mode is not None:
        sync = dataclasses.replace(sync, mode=parse_sync_mode(args.mode))
    if args.guilds:
        guild_ids = tuple(guild for value in args.guilds for guild in split_env_list(value))
        if not guild_ids:
            raise ConfigurationError("--guild requires at least one non-blank guild id")
        sync = dataclasses.replace(sync, guild_ids=guild_ids)
    if args.concurrency is not None:
        if args.concurrency <= 0:
            raise ConfigurationError("--concurrency must be positive")
        sync = dataclasses.replace(sync, max_concurrency=args.concurrency)
    return dataclasses.replace(settings, sync=sync)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=parsed_args.log_level)

    try:
        settings = _apply_overrides(get_settings(), parsed_args)
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)

    try:
        report = run_sync(settings)
    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)

    if report.failed_guilds:
        log.warning("Guilds that failed to reconcile: %s", ", ".join(report.failed_guilds))


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
