"""Decision procedure for one (repository, package) pair.

The engine is pure: it receives probe results as plain data and returns a
plan. Branch selection (self-managed PR cleanup, bot-branch adoption and the
choice of working ref) is separated from planning because the probe needs the
selected working ref before it can list the patch directory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from patchsync.domain import naming
from patchsync.domain.naming import ChangeKind

from .actions import (
    AdoptBotBranch,
    ClosePRAndDeleteBranch,
    CreateBranch,
    DeleteBranch,
    DeleteObsoleteFile,
    NoOp,
    OpenPR,
    PlanStatus,
    ReconciliationAction,
    ReconciliationPlan,
    UpsertCanonicalFile,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from patchsync.domain.model import BranchRef, PatchFile, PullRequestRef, RemotePatchEntry

log = getLogger(__name__)


@dataclass(slots=True, frozen=True)
class BranchSelection:
    """Outcome of the branch selection steps.

    ``working_branch`` is ``None`` when no branch survived and the base branch
    is the working ref. ``pull_request`` is the open pull request that already
    proposes the working branch, if any.
    """

    actions: tuple[ReconciliationAction, ...] = ()
    working_branch: str | None = None
    pull_request: PullRequestRef | None = None
    adopted_bot_branch: bool = False

    def working_ref(self, base_branch: str) -> str:
        return self.working_branch or base_branch


@dataclass(slots=True, frozen=True)
class PackageSnapshot:
    """Everything the engine needs to know about one package in one repository.

    ``listing`` must be the patch directory at the working ref that
    ``ReconciliationEngine.select_branch`` picks for the same inputs, with
    content loaded for the entry at the canonical path.
    """

    base: BranchRef
    pulls: tuple[PullRequestRef, ...] = ()
    self_branch: BranchRef | None = None
    main_entry: RemotePatchEntry | None = None
    listing: tuple[RemotePatchEntry, ...] = field(default_factory=tuple)


@dataclass(slots=True)
class ReconciliationEngine:
    """Compute the minimal plan converging remote patch state to the catalog."""

    base_branch: str = "main"
    force: frozenset[str] = field(default_factory=frozenset)

    def is_forced(self, patch: PatchFile) -> bool:
        identity = patch.identity
        return identity.name in self.force or identity.display_name in self.force

    def select_branch(
        self,
        patch: PatchFile,
        *,
        pulls: Iterable[PullRequestRef],
        self_branch: BranchRef | None,
        main_entry: RemotePatchEntry | None,
    ) -> BranchSelection:
        identity = patch.identity
        self_name = naming.self_branch(identity)
        open_pulls = [pull for pull in pulls if pull.open]
        actions: list[ReconciliationAction] = []
        self_exists = self_branch is not None and self_branch.exists

        self_pr = next((pull for pull in open_pulls if pull.head_ref == self_name), None)
        if self_pr is not None:
            fulfilled = main_entry is not None and main_entry.content == patch.content
            if fulfilled or not self_exists:
                # Either the base already carries the canonical content or the
                # head branch is gone; the pull request has nothing left to propose.
                actions.append(ClosePRAndDeleteBranch(self_pr.number, self_name))
                self_pr = None
        elif self_exists:
            actions.append(DeleteBranch(self_name))

        matches_bot = naming.bot_branch_match(identity)
        bot_pr = next((pull for pull in open_pulls if matches_bot(pull.head_ref)), None)
        if bot_pr is not None:
            if self_pr is not None:
                actions.append(ClosePRAndDeleteBranch(self_pr.number, self_name))
                self_pr = None
            actions.append(AdoptBotBranch(bot_pr.head_ref, bot_pr.number))
            return BranchSelection(
                actions=tuple(actions),
                working_branch=bot_pr.head_ref,
                pull_request=bot_pr,
                adopted_bot_branch=True,
            )

        if self_pr is not None:
            return BranchSelection(
                actions=tuple(actions),
                working_branch=self_name,
                pull_request=self_pr,
            )
        return BranchSelection(actions=tuple(actions))

    def plan(
        self,
        patch: PatchFile,
        selection: BranchSelection,
        *,
        listing: Iterable[RemotePatchEntry],
        base: BranchRef,
    ) -> ReconciliationPlan:
        identity = patch.identity
        actions = list(selection.actions)
        working_ref = selection.working_ref(self.base_branch)

        matching = [
            entry
            for entry in listing
            if entry.identity is not None and entry.identity.name == identity.name
        ]
        if not matching and not self.is_forced(patch):
            return _finish(patch, PlanStatus.SKIPPED_NO_REMOTE_PATCH, working_ref, actions)

        canonical = next(
            (entry for entry in matching if entry.path == patch.canonical_path),
            None,
        )
        if canonical is not None:
            if canonical.content is None:
                raise ValueError(f"Content of {canonical.path} at {working_ref} was not loaded")
            if canonical.content == patch.content:
                return _finish(patch, PlanStatus.IN_SYNC, working_ref, actions)

        kind = ChangeKind.UPDATE if matching else ChangeKind.CREATE
        message = naming.commit_message(identity, kind)

        branch = selection.working_branch
        if branch is None:
            if not base.exists or base.head_sha is None:
                raise ValueError(f"Base branch {base.name} has no head to branch from")
            branch = naming.self_branch(identity)
            actions.append(CreateBranch(branch, base.head_sha))

        actions.extend(
            DeleteObsoleteFile(entry.path, entry.sha, branch, message)
            for entry in matching
            if entry.path != patch.canonical_path
        )
        actions.append(
            UpsertCanonicalFile(
                path=patch.canonical_path,
                content=patch.content,
                sha=canonical.sha if canonical is not None else None,
                branch=branch,
                message=message,
            )
        )

        if selection.pull_request is None:
            actions.append(
                OpenPR(
                    head_branch=branch,
                    base_branch=self.base_branch,
                    title=naming.pr_title(identity, kind),
                    body=naming.pr_body(identity),
                )
            )

        return ReconciliationPlan(
            identity=identity,
            status=PlanStatus.CONVERGED,
            working_ref=branch,
            actions=tuple(actions),
        )

    def reconcile(self, patch: PatchFile, snapshot: PackageSnapshot) -> ReconciliationPlan:
        selection = self.select_branch(
            patch,
            pulls=snapshot.pulls,
            self_branch=snapshot.self_branch,
            main_entry=snapshot.main_entry,
        )
        return self.plan(patch, selection, listing=snapshot.listing, base=snapshot.base)


def _finish(
    patch: PatchFile,
    status: PlanStatus,
    working_ref: str,
    actions: list[ReconciliationAction],
) -> ReconciliationPlan:
    log.debug("%s at %s: %s", patch.identity, working_ref, status)
    return ReconciliationPlan(
        identity=patch.identity,
        status=status,
        working_ref=working_ref,
        actions=tuple(actions) or (NoOp(str(status)),),
    )
