"""Branch names, commit messages and pull request titles for patch updates.

These strings must stay bit-exact: existing downstream branches and pull
requests are recognised by them.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from .model import PackageIdentity

SELF_BRANCH_PREFIX = "updatepatchfilesbot-"
BOT_BRANCH_PREFIX = "dependabot-npm_and_yarn-"
PR_BODY = (
    "This pull request was opened automatically to keep the patch files of this "
    "repository in line with the canonical patch catalog."
)


class ChangeKind(StrEnum):
    CREATE = "create"
    UPDATE = "update"


def self_branch(identity: PackageIdentity) -> str:
    """Branch this tool owns for ``identity``; one per package, any version."""

    return f"{SELF_BRANCH_PREFIX}{identity.name}"


def bot_package_name(identity: PackageIdentity, *, separator: str = "-") -> str:
    return identity.name.replace("@", "").replace("+", separator).replace("/", separator)


def bot_branch_name(identity: PackageIdentity, *, separator: str = "-") -> str:
    """Dependabot's branch for bumping the package to ``identity.version``."""

    return f"{BOT_BRANCH_PREFIX}{bot_package_name(identity, separator=separator)}-{identity.version}"


def bot_branch_match(
    identity: PackageIdentity,
    version: str | None = None,
) -> Callable[[str], bool]:
    """Return a predicate recognising the bot branch for exactly (name, version)."""

    expected = f"{BOT_BRANCH_PREFIX}{bot_package_name(identity)}-{version or identity.version}"

    def matches(head_ref: str) -> bool:
        return head_ref == expected

    return matches


def commit_message(identity: PackageIdentity, kind: ChangeKind) -> str:
    return f"chore(patch): {kind} patch for package {identity.display_name}"


def pr_title(identity: PackageIdentity, kind: ChangeKind) -> str:
    return commit_message(identity, kind)


def pr_body(identity: PackageIdentity) -> str:
    return f"{PR_BODY}\n\nPackage: `{identity.display_name}`, version `{identity.version}`."
