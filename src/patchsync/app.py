"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING

from patchsync.adapters.github import GitHubActionExecutor, GitHubClient, GitHubRemoteProbe
from patchsync.config import get_github_config
from patchsync.domain.catalog import load_catalog
from patchsync.domain.driver import RepositoryDriver, RunReport
from patchsync.domain.reconciliation import ReconciliationEngine

if TYPE_CHECKING:
    from collections.abc import Callable

    from patchsync.adapters.http_resilience import ResilientClient
    from patchsync.config import GitHubConfig, ResilienceConfig, SyncConfig
    from patchsync.domain.catalog import PatchCatalog

log = getLogger(__name__)


def sync_patch_files(
    config: SyncConfig,
    *,
    github: GitHubConfig | None = None,
    catalog: PatchCatalog | None = None,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
) -> RunReport:
    """Mirror the local patch catalog into every target repository."""

    effective_github = github or get_github_config()
    effective_catalog = catalog or load_catalog(config.catalog_dir, patch_dir=config.patch_dir)
    effective_catalog = effective_catalog.select(config.packages)
    log.info(
        "Starting patch sync: packages=%s, force=%s, base=%s, dry_run=%s",
        len(effective_catalog),
        sorted(config.force),
        config.base_branch,
        config.dry_run,
    )

    report = asyncio.run(
        _run(config, effective_github, effective_catalog, client_factory=client_factory)
    )

    failures = report.failures
    log.info(
        f"Finished patch sync: repositories={len(report.repositories)}, "
        f"updated={report.updated}, failures={len(failures)}"
    )
    return report


async def _run(
    config: SyncConfig,
    github: GitHubConfig,
    catalog: PatchCatalog,
    *,
    client_factory: Callable[[ResilienceConfig], ResilientClient] | None,
) -> RunReport:
    async with GitHubClient(config=github, client_factory=client_factory) as client:
        driver = RepositoryDriver(
            probe=GitHubRemoteProbe(client),
            executor=GitHubActionExecutor(client),
            engine=ReconciliationEngine(base_branch=config.base_branch, force=config.force),
            patch_dir=config.patch_dir.strip("/"),
            max_concurrency=config.max_concurrency,
            dry_run=config.dry_run,
        )
        return await driver.run(catalog, repositories=config.repositories)
