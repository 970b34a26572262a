"""Pydantic models describing the GitHub REST payloads we consume."""

from __future__ import annotations

import base64
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ContentType = Literal["file", "dir", "symlink", "submodule"]


class GitHubBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ContentItem(GitHubBaseModel):
    type: ContentType
    name: str
    path: str
    sha: str
    size: int | None = None
    content: str | None = None
    encoding: str | None = None

    def decoded_content(self) -> bytes | None:
        """Inline file bytes, or ``None`` when GitHub left them out.

        Files over 1 MB come back with ``encoding: "none"`` and an empty
        ``content``; their bytes have to be fetched through the blob API.
        """

        if self.content is None or self.encoding == "none":
            return None
        if self.encoding not in (None, "base64"):
            raise ValueError(f"Unsupported content encoding for {self.path}: {self.encoding}")
        return base64.b64decode(self.content)


class ContentWrite(GitHubBaseModel):
    content: ContentItem


class Blob(GitHubBaseModel):
    sha: str
    content: str
    encoding: str = "base64"
    size: int | None = None

    def decoded_content(self) -> bytes:
        if self.encoding == "base64":
            return base64.b64decode(self.content)
        if self.encoding == "utf-8":
            return self.content.encode("utf-8")
        raise ValueError(f"Unsupported blob encoding for {self.sha}: {self.encoding}")


class GitObject(GitHubBaseModel):
    sha: str
    type: str | None = None


class GitRef(GitHubBaseModel):
    ref: str
    object: GitObject


class BranchPointer(GitHubBaseModel):
    ref: str
    sha: str | None = None


class PullRequest(GitHubBaseModel):
    number: int
    state: Literal["open", "closed"]
    title: str | None = None
    html_url: str | None = None
    head: BranchPointer
    base: BranchPointer


class RepositoryOwner(GitHubBaseModel):
    login: str


class Repository(GitHubBaseModel):
    name: str
    full_name: str
    owner: RepositoryOwner
    archived: bool = False
    disabled: bool = False
    default_branch: str | None = None


class ErrorDetail(GitHubBaseModel):
    resource: str | None = None
    field: str | None = None
    code: str | None = None
    message: str | None = None


class ErrorResponse(GitHubBaseModel):
    message: str = ""
    errors: list[ErrorDetail] = Field(default_factory=list["ErrorDetail"])
    documentation_url: str | None = None

    def text(self) -> str:
        details = [detail.message or detail.code or "" for detail in self.errors]
        return "; ".join(part for part in (self.message, *details) if part)
