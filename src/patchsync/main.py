from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from patchsync.app import sync_patch_files
from patchsync.common.logging import configure_logging
from patchsync.config import ConfigurationError, get_sync_config
from patchsync.domain.catalog import CatalogError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from patchsync.config import SyncConfig

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Mirror canonical patch files into downstream repositories via pull requests"
    )
    parser.add_argument(
        "--catalog-dir",
        type=Path,
        help="Local directory holding the canonical patch files (default: ./patches)",
    )
    parser.add_argument(
        "--patch-dir",
        type=str,
        help="Patch directory inside target repositories (default: patches)",
    )
    parser.add_argument(
        "--base-branch",
        type=str,
        help="Branch pull requests are opened against (default: main)",
    )
    parser.add_argument(
        "--force",
        action="append",
        metavar="PACKAGE",
        help="Allow creating a brand-new patch for PACKAGE (repeatable; adds to PATCHSYNC_FORCE)",
    )
    parser.add_argument(
        "--package",
        action="append",
        metavar="PACKAGE",
        help="Only reconcile PACKAGE (repeatable; defaults to PATCHSYNC_PACKAGES or all)",
    )
    parser.add_argument(
        "--repository",
        action="append",
        metavar="OWNER/NAME",
        help="Target repository (repeatable; defaults to every repository the token can see)",
    )
    parser.add_argument(
        "--max-concurrency",
        type=int,
        help="Number of repositories processed concurrently (default: 1)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log planned actions without changing anything",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(list(argv))


def _build_config(args: argparse.Namespace) -> SyncConfig:
    base = get_sync_config()
    force = base.force | frozenset(args.force or ())
    packages = frozenset(args.package) if args.package else None
    return get_sync_config(
        catalog_dir=args.catalog_dir,
        patch_dir=args.patch_dir,
        base_branch=args.base_branch,
        force=force,
        packages=packages,
        repositories=tuple(args.repository) if args.repository else None,
        max_concurrency=args.max_concurrency,
        dry_run=args.dry_run or None,
    )


def _write_action_output(updated: bool) -> None:
    """Append the ``update`` step output when running under GitHub Actions.

    Actions keeps the last value written for a key, so a later ``true``
    overrides the ``false`` recorded before the run.
    """

    output_path = os.getenv("GITHUB_OUTPUT")
    if not output_path:
        return
    with Path(output_path).open("a", encoding="utf-8") as handle:
        handle.write(f"update={'true' if updated else 'false'}\n")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    _write_action_output(False)
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
        configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
        config = _build_config(parsed_args)
    except ConfigurationError:
        log.exception("Invalid configuration")
        sys.exit(2)

    try:
        report = sync_patch_files(config)
    except (ConfigurationError, CatalogError):
        log.exception("Cannot start patch sync")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during patch sync")
        sys.exit(1)

    if report.updated:
        _write_action_output(True)


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
