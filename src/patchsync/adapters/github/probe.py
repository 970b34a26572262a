"""Read-only view of target repositories backed by ``GitHubClient``."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from patchsync.domain.model import (
    BranchRef,
    DirectoryListing,
    MissingContent,
    PullRequestRef,
    RemoteAPIError,
    RemoteErrorKind,
    RemotePatchEntry,
    SingleFile,
)

if TYPE_CHECKING:
    from patchsync.domain.model import ContentResult

    from .client import GitHubClient
    from .schema import ContentItem, PullRequest

log = getLogger(__name__)


def _entry(item: ContentItem) -> RemotePatchEntry:
    return RemotePatchEntry(
        name=item.name,
        path=item.path,
        sha=item.sha,
        content=item.decoded_content(),
    )


def _pull_ref(pull: PullRequest) -> PullRequestRef:
    return PullRequestRef(
        number=pull.number,
        head_ref=pull.head.ref,
        base_ref=pull.base.ref,
        open=pull.state == "open",
    )


class GitHubRemoteProbe:
    def __init__(self, client: GitHubClient) -> None:
        self._client = client

    async def list_repositories(self) -> list[str]:
        repositories = await self._client.list_repositories()
        return [
            repository.full_name
            for repository in repositories
            if not (repository.archived or repository.disabled)
        ]

    async def contents(self, repo: str, path: str, *, ref: str) -> ContentResult:
        try:
            payload = await self._client.get_contents(repo, path, ref=ref)
        except RemoteAPIError as exc:
            if exc.kind is RemoteErrorKind.NOT_FOUND:
                log.debug("%s: %s not found at %s", repo, path, ref)
                return MissingContent(path=path, ref=ref)
            raise
        if isinstance(payload, list):
            return DirectoryListing(
                tuple(_entry(item) for item in payload if item.type == "file")
            )
        if payload.type != "file":
            return MissingContent(path=path, ref=ref)
        entry = _entry(payload)
        if entry.content is None:
            log.debug("%s: %s is not inlined, fetching blob %s", repo, path, payload.sha)
            entry = RemotePatchEntry(
                name=entry.name,
                path=entry.path,
                sha=entry.sha,
                content=await self._client.get_blob(repo, payload.sha),
            )
        return SingleFile(entry)

    async def branch(self, repo: str, name: str) -> BranchRef:
        try:
            ref = await self._client.get_branch(repo, name)
        except RemoteAPIError as exc:
            if exc.kind is RemoteErrorKind.NOT_FOUND:
                return BranchRef.missing(name)
            raise
        return BranchRef(name=name, exists=True, head_sha=ref.object.sha)

    async def open_pull_requests(self, repo: str, *, base: str) -> list[PullRequestRef]:
        pulls = await self._client.list_pull_requests(repo, base=base, state="open")
        return [_pull_ref(pull) for pull in pulls]
