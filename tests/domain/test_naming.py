from __future__ import annotations

from patchsync.domain import naming
from patchsync.domain.model import PackageIdentity
from patchsync.domain.naming import ChangeKind

LEFT_PAD = PackageIdentity("left-pad", "1.2.0")
SCOPED = PackageIdentity("@salesforce+core", "2.3.4")


def test_self_branch_uses_identity_name() -> None:
    assert naming.self_branch(LEFT_PAD) == "updatepatchfilesbot-left-pad"
    assert naming.self_branch(SCOPED) == "updatepatchfilesbot-@salesforce+core"


def test_self_branch_is_deterministic_and_version_independent() -> None:
    other_version = PackageIdentity("left-pad", "1.3.0")

    assert naming.self_branch(LEFT_PAD) == naming.self_branch(LEFT_PAD)
    assert naming.self_branch(LEFT_PAD) == naming.self_branch(other_version)


def test_self_branch_distinguishes_names_that_differ_only_in_separators() -> None:
    names = ["@scope+pkg", "scope+pkg", "scope-pkg", "@scope-pkg", "left-pad", "left+pad"]
    branches = {naming.self_branch(PackageIdentity(name, "1.0.0")) for name in names}

    assert len(branches) == len(names)


def test_bot_branch_name_strips_scope_marker() -> None:
    assert naming.bot_branch_name(LEFT_PAD) == "dependabot-npm_and_yarn-left-pad-1.2.0"
    assert naming.bot_branch_name(SCOPED) == "dependabot-npm_and_yarn-salesforce-core-2.3.4"


def test_bot_branch_match_is_exact_for_version() -> None:
    matches = naming.bot_branch_match(LEFT_PAD)

    assert matches("dependabot-npm_and_yarn-left-pad-1.2.0")
    assert not matches("dependabot-npm_and_yarn-left-pad-1.1.0")
    assert not matches("dependabot-npm_and_yarn-left-pad-1.2.0-beta")
    assert not matches("dependabot-npm_and_yarn-my-left-pad-1.2.0")
    assert not matches("updatepatchfilesbot-left-pad")


def test_bot_branch_match_accepts_explicit_version() -> None:
    matches = naming.bot_branch_match(LEFT_PAD, "1.3.0")

    assert matches("dependabot-npm_and_yarn-left-pad-1.3.0")
    assert not matches("dependabot-npm_and_yarn-left-pad-1.2.0")


def test_commit_message_and_title_use_display_name() -> None:
    assert (
        naming.commit_message(SCOPED, ChangeKind.UPDATE)
        == "chore(patch): update patch for package @salesforce/core"
    )
    assert naming.pr_title(LEFT_PAD, ChangeKind.CREATE) == (
        "chore(patch): create patch for package left-pad"
    )
    assert "`left-pad`" in naming.pr_body(LEFT_PAD)
