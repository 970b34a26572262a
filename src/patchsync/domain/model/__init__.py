"""Domain model for patch synchronisation."""

from __future__ import annotations

from .patches import PackageIdentity, PatchFile, PatchFileNameError, parse_identity
from .remote import (
    AuthenticationError,
    BranchRef,
    ContentKind,
    ContentResult,
    DirectoryListing,
    MissingContent,
    PullRequestRef,
    RemoteAPIError,
    RemoteErrorKind,
    RemotePatchEntry,
    SingleFile,
)

__all__ = [
    "AuthenticationError",
    "BranchRef",
    "ContentKind",
    "ContentResult",
    "DirectoryListing",
    "MissingContent",
    "PackageIdentity",
    "PatchFile",
    "PatchFileNameError",
    "PullRequestRef",
    "RemoteAPIError",
    "RemoteErrorKind",
    "RemotePatchEntry",
    "SingleFile",
    "parse_identity",
]
