"""Apply reconciliation plans through the GitHub API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from patchsync.domain.model import RemoteAPIError, RemoteErrorKind
from patchsync.domain.ports import ExecutionResult
from patchsync.domain.reconciliation import (
    AdoptBotBranch,
    ClosePRAndDeleteBranch,
    CreateBranch,
    DeleteBranch,
    DeleteObsoleteFile,
    NoOp,
    OpenPR,
    UpsertCanonicalFile,
    describe,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from patchsync.domain.reconciliation import ReconciliationAction, ReconciliationPlan

    from .client import GitHubClient

log = getLogger(__name__)


async def _tolerate(call: Awaitable[object], *kinds: RemoteErrorKind) -> bool:
    """Await ``call``; return False instead of raising for the given error kinds."""

    try:
        await call
    except RemoteAPIError as exc:
        if exc.kind in kinds:
            log.debug("Already converged: %s", exc)
            return False
        raise
    return True


class GitHubActionExecutor:
    """Executes plan actions one at a time, strictly in order.

    Deleting something that is already gone and creating something that
    already exists count as converged. A content sha mismatch is a concurrent
    external change and propagates as ``precondition_failed``.
    """

    def __init__(self, client: GitHubClient) -> None:
        self._client = client

    async def execute(self, repo: str, plan: ReconciliationPlan) -> ExecutionResult:
        result = ExecutionResult()
        for action in plan.actions:
            if await self.apply(repo, action):
                log.info("%s: %s: %s", repo, plan.identity, describe(action))
                result.applied.append(action)
            else:
                log.debug("%s: %s: %s (nothing to change)", repo, plan.identity, describe(action))
                result.skipped.append(action)
        return result

    async def apply(self, repo: str, action: ReconciliationAction) -> bool:
        """Apply one action; return whether it changed remote state."""

        client = self._client
        if isinstance(action, NoOp | AdoptBotBranch):
            return False
        if isinstance(action, CreateBranch):
            return await _tolerate(
                client.create_branch(repo, action.name, sha=action.from_sha),
                RemoteErrorKind.DUPLICATE,
            )
        if isinstance(action, DeleteBranch):
            return await _tolerate(
                client.delete_branch(repo, action.name),
                RemoteErrorKind.NOT_FOUND,
            )
        if isinstance(action, DeleteObsoleteFile):
            return await _tolerate(
                client.delete_contents(
                    repo,
                    action.path,
                    sha=action.sha,
                    message=action.message,
                    branch=action.branch,
                ),
                RemoteErrorKind.NOT_FOUND,
            )
        if isinstance(action, UpsertCanonicalFile):
            await client.put_contents(
                repo,
                action.path,
                content=action.content,
                message=action.message,
                branch=action.branch,
                sha=action.sha,
            )
            return True
        if isinstance(action, ClosePRAndDeleteBranch):
            closed = await _tolerate(
                client.close_pull_request(repo, action.pr_number),
                RemoteErrorKind.NOT_FOUND,
            )
            deleted = await _tolerate(
                client.delete_branch(repo, action.branch_name),
                RemoteErrorKind.NOT_FOUND,
            )
            return closed or deleted
        if isinstance(action, OpenPR):
            return await _tolerate(
                client.create_pull_request(
                    repo,
                    head=action.head_branch,
                    base=action.base_branch,
                    title=action.title,
                    body=action.body,
                ),
                RemoteErrorKind.DUPLICATE,
            )
        raise TypeError(f"Unsupported reconciliation action: {action!r}")
