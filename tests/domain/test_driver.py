from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest

from patchsync.domain.catalog import PatchCatalog
from patchsync.domain.driver import RepositoryDriver
from patchsync.domain.model import (
    AuthenticationError,
    BranchRef,
    ContentResult,
    DirectoryListing,
    MissingContent,
    PullRequestRef,
    RemoteAPIError,
    RemoteErrorKind,
    RemotePatchEntry,
    SingleFile,
)
from patchsync.domain.ports import ActionExecutor, ExecutionResult, RemoteProbe
from patchsync.domain.reconciliation import (
    ActionKind,
    PlanStatus,
    ReconciliationEngine,
    ReconciliationPlan,
)
from tests.support.patches import make_patch

LEFT_PAD = make_patch("left-pad+1.2.0.patch", b"A")
RIGHT_PAD = make_patch("right-pad+2.0.0.patch", b"B")


def _listing(*paths: str) -> DirectoryListing:
    return DirectoryListing(
        tuple(
            RemotePatchEntry(name=path.rsplit("/", 1)[-1], path=path, sha=f"sha-{path}")
            for path in paths
        )
    )


@dataclass
class ScriptedProbe:
    """Serves per-repository contents; raises configured errors by (repo, path)."""

    contents_by_repo: dict[str, dict[tuple[str, str], ContentResult]] = field(default_factory=dict)
    errors: dict[tuple[str, str], Exception] = field(default_factory=dict)
    pulls: dict[str, list[PullRequestRef]] = field(default_factory=dict)
    repositories: list[str] = field(default_factory=list)
    calls: list[tuple[str, str, str]] = field(default_factory=list)

    async def list_repositories(self) -> list[str]:
        return self.repositories

    async def contents(self, repo: str, path: str, *, ref: str) -> ContentResult:
        self.calls.append((repo, path, ref))
        error = self.errors.get((repo, path))
        if error is not None:
            raise error
        return self.contents_by_repo.get(repo, {}).get(
            (path, ref), MissingContent(path=path, ref=ref)
        )

    async def branch(self, repo: str, name: str) -> BranchRef:
        if name == "main":
            return BranchRef(name, exists=True, head_sha=f"{repo}-main")
        return BranchRef.missing(name)

    async def open_pull_requests(self, repo: str, *, base: str) -> list[PullRequestRef]:
        return self.pulls.get(repo, [])


@dataclass
class RecordingExecutor:
    executed: list[tuple[str, ReconciliationPlan]] = field(default_factory=list)
    fail_for: set[str] = field(default_factory=set)

    async def execute(self, repo: str, plan: ReconciliationPlan) -> ExecutionResult:
        if plan.identity.name in self.fail_for:
            raise RemoteAPIError("sha mismatch", kind=RemoteErrorKind.PRECONDITION_FAILED)
        self.executed.append((repo, plan))
        return ExecutionResult(applied=list(plan.mutating_actions))


def _driver(
    probe: ScriptedProbe,
    executor: RecordingExecutor,
    *,
    force: frozenset[str] = frozenset(),
    **kwargs: object,
) -> RepositoryDriver:
    return RepositoryDriver(
        probe=probe,
        executor=executor,
        engine=ReconciliationEngine(force=force),
        **kwargs,  # type: ignore[arg-type]
    )


def test_fakes_satisfy_ports() -> None:
    assert isinstance(ScriptedProbe(), RemoteProbe)
    assert isinstance(RecordingExecutor(), ActionExecutor)


def test_repository_without_patch_directory_is_skipped() -> None:
    probe = ScriptedProbe()
    executor = RecordingExecutor()

    report = asyncio.run(_driver(probe, executor).run(PatchCatalog((LEFT_PAD,)), repositories=["acme/app"]))

    (outcome,) = report.repositories
    assert outcome.skipped_reason == "no patch directory"
    assert outcome.packages == []
    assert not report.updated
    assert executor.executed == []


def test_forbidden_repository_is_skipped() -> None:
    probe = ScriptedProbe(
        errors={("acme/secret", "patches"): RemoteAPIError("no", kind=RemoteErrorKind.FORBIDDEN)}
    )

    report = asyncio.run(
        _driver(probe, RecordingExecutor()).run(
            PatchCatalog((LEFT_PAD,)), repositories=["acme/secret"]
        )
    )

    assert report.repositories[0].skipped_reason == "forbidden"


def test_repositories_default_to_probe_listing_in_order() -> None:
    probe = ScriptedProbe(repositories=["acme/b", "acme/a"])

    report = asyncio.run(_driver(probe, RecordingExecutor()).run(PatchCatalog((LEFT_PAD,))))

    assert [outcome.repository for outcome in report.repositories] == ["acme/b", "acme/a"]


def test_package_failure_does_not_stop_siblings_or_other_repositories() -> None:
    listing = _listing("patches/left-pad+1.1.0.patch", "patches/right-pad+1.0.0.patch")
    probe = ScriptedProbe(
        contents_by_repo={
            "acme/one": {("patches", "main"): listing},
            "acme/two": {("patches", "main"): listing},
        }
    )
    executor = RecordingExecutor(fail_for={"left-pad"})

    report = asyncio.run(
        _driver(probe, executor).run(
            PatchCatalog((LEFT_PAD, RIGHT_PAD)), repositories=["acme/one", "acme/two"]
        )
    )

    statuses = [
        (outcome.repository, package.identity.name, package.status)
        for outcome in report.repositories
        for package in outcome.packages
    ]
    assert statuses == [
        ("acme/one", "left-pad", PlanStatus.ERROR),
        ("acme/one", "right-pad", PlanStatus.CONVERGED),
        ("acme/two", "left-pad", PlanStatus.ERROR),
        ("acme/two", "right-pad", PlanStatus.CONVERGED),
    ]
    assert [failure.error for failure in report.failures] == ["sha mismatch", "sha mismatch"]
    assert report.updated


def test_authentication_error_aborts_the_run() -> None:
    probe = ScriptedProbe(errors={("acme/app", "patches"): AuthenticationError("Bad credentials")})

    with pytest.raises(AuthenticationError):
        asyncio.run(
            _driver(probe, RecordingExecutor()).run(
                PatchCatalog((LEFT_PAD,)), repositories=["acme/app"]
            )
        )


def test_canonical_entry_content_is_loaded_lazily_at_working_ref() -> None:
    canonical = "patches/left-pad+1.2.0.patch"
    probe = ScriptedProbe(
        contents_by_repo={
            "acme/app": {
                ("patches", "main"): _listing(canonical, "patches/right-pad+1.0.0.patch"),
                (canonical, "main"): SingleFile(
                    RemotePatchEntry(
                        name="left-pad+1.2.0.patch", path=canonical, sha="x", content=b"A"
                    )
                ),
            }
        }
    )
    executor = RecordingExecutor()

    report = asyncio.run(
        _driver(probe, executor).run(PatchCatalog((LEFT_PAD,)), repositories=["acme/app"])
    )

    assert report.repositories[0].packages[0].status is PlanStatus.IN_SYNC
    assert ("acme/app", canonical, "main") in probe.calls
    assert ("acme/app", "patches/right-pad+1.0.0.patch", "main") not in probe.calls
    assert not report.updated


def test_dry_run_reports_planned_mutations_without_executing() -> None:
    probe = ScriptedProbe(
        contents_by_repo={"acme/app": {("patches", "main"): _listing("patches/left-pad+1.1.0.patch")}}
    )
    executor = RecordingExecutor()

    report = asyncio.run(
        _driver(probe, executor, dry_run=True).run(
            PatchCatalog((LEFT_PAD,)), repositories=["acme/app"]
        )
    )

    assert executor.executed == []
    assert report.updated
    package = report.repositories[0].packages[0]
    assert [action.kind for action in package.actions] == [
        ActionKind.CREATE_BRANCH,
        ActionKind.DELETE_OBSOLETE_FILE,
        ActionKind.UPSERT_CANONICAL_FILE,
        ActionKind.OPEN_PR,
    ]


def test_bounded_concurrency_keeps_repository_order() -> None:
    listing = _listing("patches/left-pad+1.1.0.patch")
    repos = [f"acme/repo-{index}" for index in range(5)]
    probe = ScriptedProbe(
        contents_by_repo={repo: {("patches", "main"): listing} for repo in repos}
    )
    executor = RecordingExecutor()

    report = asyncio.run(
        _driver(probe, executor, max_concurrency=3).run(
            PatchCatalog((LEFT_PAD,)), repositories=repos
        )
    )

    assert [outcome.repository for outcome in report.repositories] == repos
    assert sorted(repo for repo, _ in executor.executed) == repos


def test_unexpected_gate_failure_skips_only_that_repository() -> None:
    listing = _listing("patches/left-pad+1.1.0.patch")
    probe = ScriptedProbe(
        contents_by_repo={"acme/two": {("patches", "main"): listing}},
        errors={("acme/one", "patches"): ValueError("Expecting value: line 1 column 1")},
    )
    executor = RecordingExecutor()

    report = asyncio.run(
        _driver(probe, executor).run(
            PatchCatalog((LEFT_PAD,)), repositories=["acme/one", "acme/two"]
        )
    )

    one, two = report.repositories
    assert one.skipped_reason == "Expecting value: line 1 column 1"
    assert one.packages == []
    assert two.skipped_reason is None
    assert [repo for repo, _ in executor.executed] == ["acme/two"]


@dataclass
class StallingProbe(ScriptedProbe):
    """Rejects credentials for one repository and stalls on every other one."""

    rejected: str = ""
    cancelled: list[str] = field(default_factory=list)

    async def contents(self, repo: str, path: str, *, ref: str) -> ContentResult:
        if repo == self.rejected:
            await asyncio.sleep(0)
            raise AuthenticationError("Bad credentials")
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled.append(repo)
            raise
        return MissingContent(path=path, ref=ref)


def test_authentication_error_cancels_concurrent_repositories() -> None:
    repos = ["acme/a", "acme/b", "acme/c"]
    probe = StallingProbe(rejected="acme/c")

    async def scenario() -> None:
        driver = _driver(probe, RecordingExecutor(), max_concurrency=3)
        await asyncio.wait_for(driver.run(PatchCatalog((LEFT_PAD,)), repositories=repos), timeout=5)

    with pytest.raises(AuthenticationError, match="Bad credentials"):
        asyncio.run(scenario())

    assert sorted(probe.cancelled) == ["acme/a", "acme/b"]
