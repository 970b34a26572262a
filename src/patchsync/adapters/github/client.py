"""Async client for the subset of the GitHub REST API patchsync needs."""

from __future__ import annotations

import base64
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from patchsync.adapters.http_resilience import ResilientClient
from patchsync.domain.model import AuthenticationError, RemoteAPIError, RemoteErrorKind

from .schema import (
    Blob,
    ContentItem,
    ContentWrite,
    ErrorResponse,
    GitHubBaseModel,
    GitRef,
    PullRequest,
    Repository,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from patchsync.config.github import GitHubConfig
    from patchsync.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

PAGE_SIZE = 100

_DUPLICATE_MARKERS = ("already exists",)
_MISSING_MARKERS = ("does not exist", "not found")
_PRECONDITION_MARKERS = ("sha", "does not match")


def _quote_path(value: str) -> str:
    return quote(value.strip("/"), safe="/")


def _error_payload(response: httpx.Response) -> ErrorResponse:
    try:
        return ErrorResponse.model_validate(response.json())
    except (ValueError, ValidationError):
        return ErrorResponse(message=response.text[:200])


def _unexpected(response: httpx.Response, detail: str) -> RemoteAPIError:
    request = response.request
    return RemoteAPIError(
        f"{request.method} {request.url.path}: {response.status_code} {detail}",
        kind=RemoteErrorKind.TRANSPORT,
        status_code=response.status_code,
    )


def _json(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError as exc:
        raise _unexpected(response, "response body is not JSON") from exc


def _validate[M: GitHubBaseModel](model: type[M], payload: object, response: httpx.Response) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        detail = f"unexpected {model.__name__} payload ({exc.error_count()} errors)"
        raise _unexpected(response, detail) from exc


def classify_error(response: httpx.Response) -> RemoteAPIError:
    """Translate a failed response into a ``RemoteAPIError`` with an explicit kind.

    GitHub reports most semantic conflicts as ``422 Unprocessable Entity``; the
    kind is derived from the error payload here so callers only inspect ``kind``.
    """

    payload = _error_payload(response)
    text = payload.text() or response.reason_phrase
    status = response.status_code
    message = f"{response.request.method} {response.request.url.path}: {status} {text}"
    lowered = text.lower()

    if status == httpx.codes.UNAUTHORIZED:
        return AuthenticationError(message, status_code=status)
    if status == httpx.codes.FORBIDDEN:
        if response.headers.get("x-ratelimit-remaining") == "0":
            return RemoteAPIError(message, kind=RemoteErrorKind.TRANSPORT, status_code=status)
        return RemoteAPIError(message, kind=RemoteErrorKind.FORBIDDEN, status_code=status)
    if status == httpx.codes.NOT_FOUND:
        return RemoteAPIError(message, kind=RemoteErrorKind.NOT_FOUND, status_code=status)
    if status == httpx.codes.CONFLICT:
        return RemoteAPIError(
            message, kind=RemoteErrorKind.PRECONDITION_FAILED, status_code=status
        )
    if status == httpx.codes.UNPROCESSABLE_ENTITY:
        if any(marker in lowered for marker in _DUPLICATE_MARKERS):
            kind = RemoteErrorKind.DUPLICATE
        elif any(marker in lowered for marker in _MISSING_MARKERS):
            kind = RemoteErrorKind.NOT_FOUND
        elif any(marker in lowered for marker in _PRECONDITION_MARKERS):
            kind = RemoteErrorKind.PRECONDITION_FAILED
        else:
            kind = RemoteErrorKind.TRANSPORT
        return RemoteAPIError(message, kind=kind, status_code=status)
    return RemoteAPIError(message, kind=RemoteErrorKind.TRANSPORT, status_code=status)


class GitHubClient:
    """Thin typed wrapper over the GitHub REST API.

    Every failure surfaces as ``RemoteAPIError`` (``AuthenticationError`` for
    rejected credentials). Transport errors are wrapped with the ``transport``
    kind once the resilient client has exhausted its retries, and so are
    bodies that are not JSON or do not match the expected payload.
    """

    def __init__(
        self,
        *,
        config: GitHubConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> GitHubClient:
        self._client = self._client_factory(self._resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # repositories

    async def list_repositories(self) -> list[Repository]:
        """Repositories the token can see, in the order GitHub returns them."""

        return await self._paginate(
            "user/repos",
            Repository,
            params={"per_page": PAGE_SIZE, "sort": "full_name"},
        )

    # contents

    async def get_contents(self, repo: str, path: str, *, ref: str) -> ContentItem | list[ContentItem]:
        response = await self._request(
            "GET",
            f"repos/{repo}/contents/{_quote_path(path)}",
            params={"ref": ref},
        )
        payload = _json(response)
        if isinstance(payload, list):
            return [_validate(ContentItem, item, response) for item in payload]
        return _validate(ContentItem, payload, response)

    async def put_contents(
        self,
        repo: str,
        path: str,
        *,
        content: bytes,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> ContentItem:
        body: dict[str, object] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": branch,
        }
        if sha is not None:
            body["sha"] = sha
        response = await self._request(
            "PUT",
            f"repos/{repo}/contents/{_quote_path(path)}",
            json=body,
        )
        return _validate(ContentWrite, _json(response), response).content

    async def delete_contents(
        self,
        repo: str,
        path: str,
        *,
        sha: str,
        message: str,
        branch: str,
    ) -> None:
        await self._request(
            "DELETE",
            f"repos/{repo}/contents/{_quote_path(path)}",
            json={"message": message, "sha": sha, "branch": branch},
        )

    async def get_blob(self, repo: str, sha: str) -> bytes:
        """Raw bytes of a blob, for files too large to come back inline."""

        response = await self._request("GET", f"repos/{repo}/git/blobs/{sha}")
        blob = _validate(Blob, _json(response), response)
        try:
            return blob.decoded_content()
        except ValueError as exc:
            raise _unexpected(response, str(exc)) from exc

    # refs

    async def get_branch(self, repo: str, branch: str) -> GitRef:
        response = await self._request(
            "GET",
            f"repos/{repo}/git/ref/heads/{_quote_path(branch)}",
        )
        return _validate(GitRef, _json(response), response)

    async def create_branch(self, repo: str, branch: str, *, sha: str) -> GitRef:
        response = await self._request(
            "POST",
            f"repos/{repo}/git/refs",
            json={"ref": f"refs/heads/{branch}", "sha": sha},
        )
        return _validate(GitRef, _json(response), response)

    async def delete_branch(self, repo: str, branch: str) -> None:
        await self._request(
            "DELETE",
            f"repos/{repo}/git/refs/heads/{_quote_path(branch)}",
        )

    # pull requests

    async def list_pull_requests(
        self,
        repo: str,
        *,
        base: str,
        state: str = "open",
    ) -> list[PullRequest]:
        return await self._paginate(
            f"repos/{repo}/pulls",
            PullRequest,
            params={"state": state, "base": base, "per_page": PAGE_SIZE},
        )

    async def create_pull_request(
        self,
        repo: str,
        *,
        head: str,
        base: str,
        title: str,
        body: str = "",
    ) -> PullRequest:
        response = await self._request(
            "POST",
            f"repos/{repo}/pulls",
            json={"head": head, "base": base, "title": title, "body": body},
        )
        return _validate(PullRequest, _json(response), response)

    async def close_pull_request(self, repo: str, number: int) -> PullRequest:
        response = await self._request(
            "PATCH",
            f"repos/{repo}/pulls/{number}",
            json={"state": "closed"},
        )
        return _validate(PullRequest, _json(response), response)

    # plumbing

    async def _paginate[M: GitHubBaseModel](
        self,
        url: str,
        model: type[M],
        *,
        params: dict[str, str | int],
    ) -> list[M]:
        items: list[M] = []
        next_url: str | None = url
        next_params: dict[str, str | int] | None = params
        while next_url is not None:
            response = await self._request("GET", next_url, params=next_params)
            payload = _json(response)
            if not isinstance(payload, list):
                raise _unexpected(response, "expected a JSON list")
            items.extend(_validate(model, item, response) for item in payload)
            next_link = response.links.get("next")
            next_url = next_link.get("url") if next_link else None
            # the next link already carries the query string
            next_params = None
        return items

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str | int] | None = None,
        json: object = None,
    ) -> httpx.Response:
        if self._client is None:
            raise RuntimeError("GitHubClient used outside of 'async with'")
        log.debug("%s %s", method, url)
        try:
            response = await self._client.request(method, url, params=params, json=json)
        except httpx.HTTPError as exc:
            raise RemoteAPIError(
                f"{method} {url}: {exc}", kind=RemoteErrorKind.TRANSPORT
            ) from exc
        if response.is_error:
            raise classify_error(response)
        return response
