"""Ports for reading and mutating a target repository."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from patchsync.domain.model import BranchRef, ContentResult, PullRequestRef
    from patchsync.domain.reconciliation import ReconciliationAction, ReconciliationPlan


@runtime_checkable
class RemoteProbe(Protocol):
    """Read-only queries against target repositories.

    Absent resources are reported as data (``MissingContent``, ``exists=False``)
    rather than raised.
    """

    async def list_repositories(self) -> Sequence[str]: ...

    async def contents(self, repo: str, path: str, *, ref: str) -> ContentResult: ...

    async def branch(self, repo: str, name: str) -> BranchRef: ...

    async def open_pull_requests(self, repo: str, *, base: str) -> Sequence[PullRequestRef]: ...


@dataclass(slots=True)
class ExecutionResult:
    """Actions applied for one plan, in order; ``skipped`` were already converged."""

    applied: list[ReconciliationAction] = field(default_factory=list["ReconciliationAction"])
    skipped: list[ReconciliationAction] = field(default_factory=list["ReconciliationAction"])

    @property
    def changed(self) -> bool:
        return bool(self.applied)


@runtime_checkable
class ActionExecutor(Protocol):
    """Applies reconciliation plans to a target repository."""

    async def execute(self, repo: str, plan: ReconciliationPlan) -> ExecutionResult: ...


__all__ = ["ActionExecutor", "ExecutionResult", "RemoteProbe"]
