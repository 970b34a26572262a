"""Logging setup for the patchsync CLI and its GitHub Actions runs."""

from __future__ import annotations

import logging


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Route every repository and package decision to stderr for the job log.

    Lines carry the logger name so a run over many repositories can be
    filtered per module. Per-request httpx lines only appear at DEBUG, which
    ``--verbose`` selects. ``force=True`` replaces handlers installed earlier.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    # httpx logs every request at INFO; keep that behind --verbose
    logging.getLogger("httpx").setLevel(level if level <= logging.DEBUG else logging.WARNING)
