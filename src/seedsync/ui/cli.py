from __future__ import annotations

import argparse
import logging
import sys
from datetime import timedelta
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from seedsync.app import enable_cache, init_database, sync_table, table_status
from seedsync.config import configure_logging
from seedsync.domain import SyncStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Synchronise seed data into database tables")
    parser.add_argument(
        "--database-uri",
        type=str,
        help="SQLAlchemy database URI (defaults to DATABASE_URI or the local data dir)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log chunk progress")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create or upgrade the bookkeeping tables")

    sync = subparsers.add_parser("sync", help="Synchronise one table from a data file")
    sync.add_argument("table", type=str, help="Target table name")
    sync.add_argument("path", type=str, help="CSV or JSON file holding the desired rows")
    sync.add_argument(
        "--format",
        dest="source_format",
        choices=("csv", "json"),
        help="Source format (guessed from the file suffix by default)",
    )
    sync.add_argument(
        "--truncate",
        action="store_true",
        help="Delete every row and digest of the table before loading",
    )
    sync.add_argument(
        "--force-update",
        action="store_true",
        help="Ignore cached digests and compare every stored row field by field",
    )
    sync.add_argument(
        "--nvl",
        action="store_true",
        default=None,
        help="Replace empty values with 0 or '' where the column has no default",
    )
    sync.add_argument(
        "--datetime-offset-hours",
        type=float,
        help="Hours added to every datetime value (defaults to config)",
    )
    sync.add_argument(
        "--parent-table",
        type=str,
        help="Parent table whose cached state is invalidated by changed rows",
    )
    sync.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Number of rows written per transaction (defaults to config)",
    )

    status = subparsers.add_parser("status", help="Show the cached state of a table")
    status.add_argument("table", type=str, help="Target table name")

    cache = subparsers.add_parser("enable-cache", help="Re-enable the record cache of a table")
    cache.add_argument("table", type=str, help="Target table name")

    return parser.parse_args(list(argv))


def _validate_args(args: argparse.Namespace) -> None:
    if args.command != "sync":
        return
    if args.batch_size is not None and args.batch_size < 1:
        raise ValueError("Batch size must be positive")
    if args.truncate and args.force_update:
        raise ValueError("--truncate and --force-update are mutually exclusive")


def _run_sync(args: argparse.Namespace) -> bool:
    offset = (
        None if args.datetime_offset_hours is None else timedelta(hours=args.datetime_offset_hours)
    )
    result = sync_table(
        args.table,
        args.path,
        source_format=args.source_format,
        truncate=args.truncate,
        force_update=args.force_update,
        nvl_mode=args.nvl,
        datetime_offset=offset,
        parent_table=args.parent_table,
        batch_size=args.batch_size,
    )
    for error in result.errors:
        log.error("%s: %s", args.table, error)
    if result.status is SyncStatus.SKIPPED:
        log.info("%s is up to date", args.table)
    return result.ok


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate_args(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)
    if parsed_args.verbose:
        configure_logging(verbose=True, force=True)

    try:
        init_database(database_uri=parsed_args.database_uri)
        if parsed_args.command == "init-db":
            log.info("Bookkeeping tables are up to date")
        elif parsed_args.command == "sync":
            if not _run_sync(parsed_args):
                sys.exit(1)
        elif parsed_args.command == "status":
            state = table_status(parsed_args.table)
            if state is None:
                log.info("%s has never been synchronised", parsed_args.table)
            else:
                log.info(
                    "%s: digest=%s, cache_disabled=%s, updated_at=%s",
                    state.table_name,
                    state.digest,
                    state.cache_disabled,
                    state.updated_at,
                )
        elif parsed_args.command == "enable-cache":
            enable_cache(parsed_args.table)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)


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
