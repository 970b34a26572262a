"""Drive reconciliation across repositories and catalog entries."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from patchsync.domain import naming
from patchsync.domain.model import (
    AuthenticationError,
    DirectoryListing,
    RemoteAPIError,
    RemoteErrorKind,
    SingleFile,
)
from patchsync.domain.reconciliation import PlanStatus, describe

if TYPE_CHECKING:
    from collections.abc import Sequence

    from patchsync.domain.catalog import PatchCatalog
    from patchsync.domain.model import PackageIdentity, PatchFile, RemotePatchEntry
    from patchsync.domain.ports import ActionExecutor, RemoteProbe
    from patchsync.domain.reconciliation import (
        ReconciliationAction,
        ReconciliationEngine,
        ReconciliationPlan,
    )

log = getLogger(__name__)


@dataclass(slots=True)
class PackageOutcome:
    repository: str
    identity: PackageIdentity
    status: PlanStatus
    actions: tuple[ReconciliationAction, ...] = ()
    error: str | None = None

    @property
    def changed(self) -> bool:
        return bool(self.actions)


@dataclass(slots=True)
class RepositoryOutcome:
    repository: str
    skipped_reason: str | None = None
    packages: list[PackageOutcome] = field(default_factory=list["PackageOutcome"])

    @property
    def changed(self) -> bool:
        return any(package.changed for package in self.packages)


@dataclass(slots=True)
class RunReport:
    repositories: list[RepositoryOutcome] = field(default_factory=list["RepositoryOutcome"])
    dry_run: bool = False

    @property
    def updated(self) -> bool:
        """Whether any convergence action was taken (or, in a dry run, planned)."""

        return any(repository.changed for repository in self.repositories)

    @property
    def failures(self) -> list[PackageOutcome]:
        return [
            package
            for repository in self.repositories
            for package in repository.packages
            if package.status is PlanStatus.ERROR
        ]


@dataclass(slots=True)
class RepositoryDriver:
    """Runs the probe → engine → executor loop for every (repository, package).

    Failures are isolated per package: a remote error aborts the current
    package's plan only. ``AuthenticationError`` aborts the whole run.
    """

    probe: RemoteProbe
    executor: ActionExecutor
    engine: ReconciliationEngine
    patch_dir: str = "patches"
    max_concurrency: int = 1
    dry_run: bool = False

    @property
    def base_branch(self) -> str:
        return self.engine.base_branch

    async def run(
        self,
        catalog: PatchCatalog,
        *,
        repositories: Sequence[str] | None = None,
    ) -> RunReport:
        targets = list(repositories) if repositories else list(await self.probe.list_repositories())
        log.info("Reconciling %s packages across %s repositories", len(catalog), len(targets))

        report = RunReport(dry_run=self.dry_run)
        if self.max_concurrency <= 1:
            for repo in targets:
                report.repositories.append(await self.reconcile_repository(repo, catalog))
            return report

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def bounded(repo: str) -> RepositoryOutcome:
            async with semaphore:
                return await self.reconcile_repository(repo, catalog)

        # only AuthenticationError escapes reconcile_repository; the group has
        # cancelled the other repositories by the time it raises
        try:
            async with asyncio.TaskGroup() as group:
                tasks = [group.create_task(bounded(repo)) for repo in targets]
        except ExceptionGroup as failure:
            raise failure.exceptions[0] from None
        report.repositories.extend(task.result() for task in tasks)
        return report

    async def reconcile_repository(self, repo: str, catalog: PatchCatalog) -> RepositoryOutcome:
        try:
            gate = await self.probe.contents(repo, self.patch_dir, ref=self.base_branch)
        except AuthenticationError:
            raise
        except RemoteAPIError as exc:
            if exc.kind is RemoteErrorKind.FORBIDDEN:
                log.info("%s: skipped, no access", repo)
                return RepositoryOutcome(repo, skipped_reason="forbidden")
            log.error("%s: skipped, cannot read %s: %s", repo, self.patch_dir, exc)
            return RepositoryOutcome(repo, skipped_reason=str(exc))
        except Exception as exc:  # noqa: BLE001
            log.exception("%s: skipped, unexpected failure reading %s", repo, self.patch_dir)
            return RepositoryOutcome(repo, skipped_reason=str(exc))

        if not isinstance(gate, DirectoryListing):
            log.info("%s: skipped, no %s directory on %s", repo, self.patch_dir, self.base_branch)
            return RepositoryOutcome(repo, skipped_reason="no patch directory")

        outcome = RepositoryOutcome(repo)
        for patch in catalog:
            outcome.packages.append(await self.reconcile_package(repo, patch))
        return outcome

    async def reconcile_package(self, repo: str, patch: PatchFile) -> PackageOutcome:
        identity = patch.identity
        try:
            plan = await self.build_plan(repo, patch)
            if self.dry_run:
                for action in plan.mutating_actions:
                    log.info("%s: %s: would %s", repo, identity, describe(action))
                return PackageOutcome(repo, identity, plan.status, plan.mutating_actions)
            result = await self.executor.execute(repo, plan)
        except AuthenticationError:
            raise
        except RemoteAPIError as exc:
            log.error("%s: %s: %s failure: %s", repo, identity, exc.kind, exc)
            return PackageOutcome(repo, identity, PlanStatus.ERROR, error=str(exc))
        except Exception as exc:  # noqa: BLE001
            log.exception("%s: %s: unexpected failure", repo, identity)
            return PackageOutcome(repo, identity, PlanStatus.ERROR, error=str(exc))

        if plan.status is not PlanStatus.CONVERGED:
            log.info("%s: %s: %s", repo, identity, plan.status)
        return PackageOutcome(repo, identity, plan.status, tuple(result.applied))

    async def build_plan(self, repo: str, patch: PatchFile) -> ReconciliationPlan:
        """Probe fresh remote state for ``patch`` and ask the engine for a plan."""

        identity = patch.identity
        base = await self.probe.branch(repo, self.base_branch)
        pulls = await self.probe.open_pull_requests(repo, base=self.base_branch)
        self_name = naming.self_branch(identity)
        self_branch = await self.probe.branch(repo, self_name)

        main_entry: RemotePatchEntry | None = None
        if any(pull.head_ref == self_name for pull in pulls):
            main_entry = await self._file(repo, patch.canonical_path, ref=self.base_branch)

        selection = self.engine.select_branch(
            patch,
            pulls=pulls,
            self_branch=self_branch,
            main_entry=main_entry,
        )
        working_ref = selection.working_ref(self.base_branch)
        listing = await self._listing(repo, patch, ref=working_ref)
        return self.engine.plan(patch, selection, listing=listing, base=base)

    async def _file(self, repo: str, path: str, *, ref: str) -> RemotePatchEntry | None:
        result = await self.probe.contents(repo, path, ref=ref)
        if isinstance(result, SingleFile):
            return result.entry
        return None

    async def _listing(
        self,
        repo: str,
        patch: PatchFile,
        *,
        ref: str,
    ) -> tuple[RemotePatchEntry, ...]:
        result = await self.probe.contents(repo, self.patch_dir, ref=ref)
        if not isinstance(result, DirectoryListing):
            return ()
        entries: list[RemotePatchEntry] = []
        for entry in result.entries:
            if entry.path == patch.canonical_path and entry.content is None:
                loaded = await self._file(repo, entry.path, ref=ref)
                entries.append(loaded or entry)
                continue
            entries.append(entry)
        return tuple(entries)
