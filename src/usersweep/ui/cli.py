from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from usersweep.adapters.graph import GraphGroupMembersFeed
from usersweep.adapters.jsonl import DEFAULT_PAGE_SIZE, JsonLinesIdentityFeed
from usersweep.app import mark_accounts, reconcile_accounts, sweep_accounts
from usersweep.common.run_lock import RunLock
from usersweep.config import (
    ConfigurationError,
    configure_logging,
    get_graph_config,
    get_reconciliation_config,
    get_storage_config,
    load_reconciliation_config,
)
from usersweep.domain.reconciliation import RunOptions

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from usersweep.config import ReconciliationConfig
    from usersweep.domain.ports.fetching import IdentityFeed

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        help="TOML settings file (defaults to USERSWEEP_* environment variables)",
    )
    common.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute and report deletions without changing anything",
    )
    common.add_argument(
        "--debug",
        action="store_true",
        help="Log every user that is, or would be, deleted",
    )
    common.add_argument(
        "--lock-file",
        type=Path,
        help="Lock file guarding against overlapping runs (defaults to the data directory)",
    )

    feed = argparse.ArgumentParser(add_help=False)
    feed.add_argument(
        "--records",
        type=Path,
        help="Read directory users from a JSON Lines file instead of Microsoft Graph",
    )
    feed.add_argument(
        "--page-size",
        type=int,
        default=DEFAULT_PAGE_SIZE,
        help="Records per page when reading --records (default: %(default)s)",
    )

    parser = argparse.ArgumentParser(
        description="Delete local users that are no longer present in the directory"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser(
        "reconcile",
        parents=[common, feed],
        help="Delete in-scope users missing from the directory in a single pass",
    )
    subparsers.add_parser(
        "mark",
        parents=[common, feed],
        help="Mark in-scope users for deletion and unmark those still in the directory",
    )
    subparsers.add_parser(
        "sweep",
        parents=[common],
        help="Delete in-scope users that are still marked for deletion",
    )
    return parser.parse_args(list(argv))


def _load_config(args: argparse.Namespace) -> ReconciliationConfig:
    if args.config is not None:
        return load_reconciliation_config(args.config)
    return get_reconciliation_config()


def _build_feed(args: argparse.Namespace) -> IdentityFeed:
    if args.records is not None:
        if args.page_size < 1:
            raise ValueError("--page-size must be positive")
        return JsonLinesIdentityFeed(path=args.records, page_size=args.page_size)
    return GraphGroupMembersFeed(config=get_graph_config())


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.debug:
            configure_logging(level=logging.DEBUG, force=True)
        config = _load_config(parsed_args)
        feed = _build_feed(parsed_args) if parsed_args.command != "sweep" else None
    except (ValueError, ConfigurationError):
        log.exception("Configuration error")
        sys.exit(2)

    options = RunOptions(dry_run=parsed_args.dry_run, debug=parsed_args.debug)
    lock_path = parsed_args.lock_file or get_storage_config().lock_path()

    try:
        with RunLock(lock_path):
            if parsed_args.command == "reconcile" and feed is not None:
                reconcile_accounts(config, feed=feed, options=options)
            elif parsed_args.command == "mark" and feed is not None:
                mark_accounts(config, feed=feed, options=options)
            elif parsed_args.command == "sweep":
                sweep_accounts(config, options=options)
            else:
                raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except Exception:
        log.exception("Fatal error during reconciliation")
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
