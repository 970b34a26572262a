"""Reconciliation actions and plans.

A plan is the contract between the pure decision procedure and the executor:
an ordered tuple of actions where later actions assume the earlier ones have
already been applied to the working branch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from patchsync.domain.model import PackageIdentity


class ActionKind(StrEnum):
    NOOP = "noop"
    ADOPT_BOT_BRANCH = "adopt_bot_branch"
    CREATE_BRANCH = "create_branch"
    DELETE_BRANCH = "delete_branch"
    DELETE_OBSOLETE_FILE = "delete_obsolete_file"
    UPSERT_CANONICAL_FILE = "upsert_canonical_file"
    CLOSE_PR_AND_DELETE_BRANCH = "close_pr_and_delete_branch"
    OPEN_PR = "open_pr"


@dataclass(slots=True, frozen=True)
class NoOp:
    reason: str = ""
    kind: Literal[ActionKind.NOOP] = ActionKind.NOOP


@dataclass(slots=True, frozen=True)
class AdoptBotBranch:
    """Use the bot's branch (and its open pull request) as the working branch."""

    branch_name: str
    pr_number: int
    kind: Literal[ActionKind.ADOPT_BOT_BRANCH] = ActionKind.ADOPT_BOT_BRANCH


@dataclass(slots=True, frozen=True)
class CreateBranch:
    name: str
    from_sha: str
    kind: Literal[ActionKind.CREATE_BRANCH] = ActionKind.CREATE_BRANCH


@dataclass(slots=True, frozen=True)
class DeleteBranch:
    """Best-effort removal of a self-managed branch no pull request refers to."""

    name: str
    kind: Literal[ActionKind.DELETE_BRANCH] = ActionKind.DELETE_BRANCH


@dataclass(slots=True, frozen=True)
class DeleteObsoleteFile:
    path: str
    sha: str
    branch: str
    message: str
    kind: Literal[ActionKind.DELETE_OBSOLETE_FILE] = ActionKind.DELETE_OBSOLETE_FILE


@dataclass(slots=True, frozen=True)
class UpsertCanonicalFile:
    """Create (``sha is None``) or update the canonical file on ``branch``."""

    path: str
    content: bytes = field(repr=False)
    sha: str | None
    branch: str
    message: str
    kind: Literal[ActionKind.UPSERT_CANONICAL_FILE] = ActionKind.UPSERT_CANONICAL_FILE


@dataclass(slots=True, frozen=True)
class ClosePRAndDeleteBranch:
    pr_number: int
    branch_name: str
    kind: Literal[ActionKind.CLOSE_PR_AND_DELETE_BRANCH] = ActionKind.CLOSE_PR_AND_DELETE_BRANCH


@dataclass(slots=True, frozen=True)
class OpenPR:
    head_branch: str
    base_branch: str
    title: str
    body: str = ""
    kind: Literal[ActionKind.OPEN_PR] = ActionKind.OPEN_PR


type ReconciliationAction = (
    NoOp
    | AdoptBotBranch
    | CreateBranch
    | DeleteBranch
    | DeleteObsoleteFile
    | UpsertCanonicalFile
    | ClosePRAndDeleteBranch
    | OpenPR
)

NON_MUTATING_KINDS = frozenset({ActionKind.NOOP, ActionKind.ADOPT_BOT_BRANCH})


class PlanStatus(StrEnum):
    """Terminal outcome of one (repository, package) reconciliation."""

    SKIPPED_NO_REMOTE_PATCH = "skipped-no-remote-patch"
    IN_SYNC = "in-sync"
    CONVERGED = "converged"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class ReconciliationPlan:
    identity: PackageIdentity
    status: PlanStatus
    working_ref: str
    actions: tuple[ReconciliationAction, ...] = ()

    @property
    def mutates(self) -> bool:
        return any(action.kind not in NON_MUTATING_KINDS for action in self.actions)

    @property
    def mutating_actions(self) -> tuple[ReconciliationAction, ...]:
        return tuple(action for action in self.actions if action.kind not in NON_MUTATING_KINDS)


def describe(action: ReconciliationAction) -> str:
    """One-line, log friendly rendering of an action."""

    if isinstance(action, NoOp):
        return f"no-op ({action.reason})" if action.reason else "no-op"
    if isinstance(action, AdoptBotBranch):
        return f"adopt bot branch {action.branch_name} (#{action.pr_number})"
    if isinstance(action, CreateBranch):
        return f"create branch {action.name} at {action.from_sha[:7]}"
    if isinstance(action, DeleteBranch):
        return f"delete branch {action.name}"
    if isinstance(action, DeleteObsoleteFile):
        return f"delete {action.path} on {action.branch}"
    if isinstance(action, UpsertCanonicalFile):
        verb = "update" if action.sha else "create"
        return f"{verb} {action.path} on {action.branch}"
    if isinstance(action, ClosePRAndDeleteBranch):
        return f"close #{action.pr_number} and delete {action.branch_name}"
    return f"open pull request {action.head_branch} -> {action.base_branch}"
