"""Remote state observed in a target repository.

Probe results are resolved into these types once at the adapter boundary, so
the reconciliation engine never inspects raw API payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Literal

from .patches import PackageIdentity, parse_identity


@dataclass(slots=True, frozen=True)
class RemotePatchEntry:
    """A file observed inside a repository's patch directory at a specific ref.

    ``content`` stays ``None`` until a comparison requires it.
    """

    name: str
    path: str
    sha: str
    content: bytes | None = field(default=None, repr=False)

    @property
    def identity(self) -> PackageIdentity | None:
        return parse_identity(self.name)


@dataclass(slots=True, frozen=True)
class BranchRef:
    name: str
    exists: bool
    head_sha: str | None = None

    @classmethod
    def missing(cls, name: str) -> BranchRef:
        return cls(name=name, exists=False)


@dataclass(slots=True, frozen=True)
class PullRequestRef:
    number: int
    head_ref: str
    base_ref: str
    open: bool = True


class ContentKind(StrEnum):
    FILE = "file"
    DIRECTORY = "directory"
    MISSING = "missing"


@dataclass(slots=True, frozen=True)
class SingleFile:
    entry: RemotePatchEntry
    kind: Literal[ContentKind.FILE] = ContentKind.FILE


@dataclass(slots=True, frozen=True)
class DirectoryListing:
    entries: tuple[RemotePatchEntry, ...] = ()
    kind: Literal[ContentKind.DIRECTORY] = ContentKind.DIRECTORY


@dataclass(slots=True, frozen=True)
class MissingContent:
    path: str
    ref: str
    kind: Literal[ContentKind.MISSING] = ContentKind.MISSING


type ContentResult = SingleFile | DirectoryListing | MissingContent


class RemoteErrorKind(StrEnum):
    """Classification of a failed remote call."""

    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    PRECONDITION_FAILED = "precondition_failed"
    DUPLICATE = "duplicate"
    UNAUTHORIZED = "unauthorized"
    TRANSPORT = "transport"


class RemoteAPIError(RuntimeError):
    """Raised when a remote call fails; ``kind`` tells callers how to react."""

    def __init__(
        self,
        message: str,
        *,
        kind: RemoteErrorKind = RemoteErrorKind.TRANSPORT,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class AuthenticationError(RemoteAPIError):
    """Raised when the remote rejects our credentials; aborts the whole run."""

    def __init__(self, message: str, *, status_code: int | None = 401) -> None:
        super().__init__(message, kind=RemoteErrorKind.UNAUTHORIZED, status_code=status_code)
