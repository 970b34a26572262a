"""Reconciliation core: decides how a repository's patch files converge to the catalog."""

from __future__ import annotations

from .actions import (
    ActionKind,
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
    describe,
)
from .engine import BranchSelection, PackageSnapshot, ReconciliationEngine

__all__ = [
    "ActionKind",
    "AdoptBotBranch",
    "BranchSelection",
    "ClosePRAndDeleteBranch",
    "CreateBranch",
    "DeleteBranch",
    "DeleteObsoleteFile",
    "NoOp",
    "OpenPR",
    "PackageSnapshot",
    "PlanStatus",
    "ReconciliationAction",
    "ReconciliationEngine",
    "ReconciliationPlan",
    "UpsertCanonicalFile",
    "describe",
]
