"""Public interface for the GitHub adapter."""

from __future__ import annotations

from .client import GitHubClient, classify_error
from .executor import GitHubActionExecutor
from .probe import GitHubRemoteProbe
from .schema import ContentItem, GitRef, PullRequest, Repository

__all__ = [
    "ContentItem",
    "GitHubActionExecutor",
    "GitHubClient",
    "GitHubRemoteProbe",
    "GitRef",
    "PullRequest",
    "Repository",
    "classify_error",
]
