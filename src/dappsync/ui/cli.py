from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from dappsync.app import (
    generate_metadata,
    link_dapp_chains,
    merge_duplicate_dapps,
    sync_dapps,
)
from dappsync.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from dappsync.domain.data_integration import BatchSummary

log = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"Expected a positive integer, got {value}")
    return number


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile dapp records across providers")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    merge = subparsers.add_parser("merge-duplicates", help="Merge and delete duplicate dapps")
    merge.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the groups without writing or deleting anything",
    )

    metadata = subparsers.add_parser(
        "unified-metadata", help="Rebuild the unified metadata of every dapp"
    )
    metadata.add_argument(
        "--budget-bytes",
        type=_positive_int,
        default=None,
        help="Maximum encoded size of one metadata blob (defaults to config)",
    )
    metadata.add_argument(
        "--minimal",
        action="store_true",
        help="Reconcile every record in minimal mode",
    )

    sync = subparsers.add_parser("sync", help="Refresh dapps from DeFiLlama and Alchemy")
    sync.add_argument(
        "--limit",
        type=_positive_int,
        help="Maximum number of dapps to sync",
    )

    link = subparsers.add_parser("link-chains", help="Link dapps to their chain items")
    link.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the links without writing them",
    )

    return parser.parse_args(list(argv))


def _run(args: argparse.Namespace) -> BatchSummary:
    if args.command == "merge-duplicates":
        return merge_duplicate_dapps(dry_run=args.dry_run)
    if args.command == "unified-metadata":
        return generate_metadata(budget_bytes=args.budget_bytes, force_minimal=args.minimal)
    if args.command == "sync":
        return sync_dapps(limit=args.limit)
    if args.command == "link-chains":
        return link_dapp_chains(dry_run=args.dry_run)
    raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    # argparse exits with status 2 on invalid arguments.
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        summary = _run(parsed_args)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)
    log.info("%s: %s", parsed_args.command, summary)


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
