from __future__ import annotations

from typing import TYPE_CHECKING, TypedDict

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import RetryTransport

from patchsync.config.http_resilience import (
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import HeaderTypes, QueryParamTypes, TimeoutTypes

__all__ = [
    "RateLimit",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
]


class AsyncClientOptions(TypedDict, total=False):
    base_url: str
    timeout: TimeoutTypes
    headers: HeaderTypes
    transport: httpx.AsyncBaseTransport


def _client_options(config: ResilienceConfig) -> AsyncClientOptions:
    options: AsyncClientOptions = {
        "timeout": config.timeout_seconds,
        "transport": RetryTransport(retry=config.retry.build()),
    }
    if config.base_url is not None:
        options["base_url"] = config.base_url
    if config.default_headers:
        options["headers"] = dict(config.default_headers)
    return options


class ResilientClient:
    """``httpx.AsyncClient`` with bounded retries and a client-side rate limit.

    Responses are never cached: callers re-probe remote state before every
    mutation and must observe what the server holds right now.
    """

    def __init__(self, config: ResilienceConfig) -> None:
        self.config = config
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )
        self._client = httpx.AsyncClient(**_client_options(config))

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: QueryParamTypes | None = None,
        json: object = None,
    ) -> httpx.Response:
        """Send one request, waiting for a rate limit slot first.

        ``json=None`` sends no body, which GitHub requires for GET requests.
        """

        if self._limiter is None:
            return await self._send(method, url, params=params, json=json)
        async with self._limiter:
            return await self._send(method, url, params=params, json=json)

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: QueryParamTypes | None,
        json: object,
    ) -> httpx.Response:
        if json is None:
            return await self._client.request(method, url, params=params)
        return await self._client.request(method, url, params=params, json=json)
