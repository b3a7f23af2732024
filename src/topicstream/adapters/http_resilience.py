"""httpx client with bounded retry, client-side rate limiting and optional caching."""

from __future__ import annotations

import logging
from contextlib import AbstractAsyncContextManager, nullcontext
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from hishel import AsyncSqliteStorage
from hishel.httpx import AsyncCacheClient
from httpx_retries import Retry, RetryTransport

from topicstream.config.storage import get_storage_config

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._client import UseClientDefault
    from httpx._types import (
        HeaderTypes,
        QueryParamTypes,
        RequestData,
        TimeoutTypes,
        URLTypes,
    )

    from topicstream.config.http_resilience import CacheConfig, ResilienceConfig, RetryPolicy

log = logging.getLogger(__name__)


class RequestOptions(TypedDict, total=False):
    """The subset of ``httpx.AsyncClient.request`` keywords the forum gateway uses."""

    data: RequestData | None
    json: object
    params: QueryParamTypes | None
    headers: HeaderTypes | None
    follow_redirects: bool | UseClientDefault
    timeout: TimeoutTypes | UseClientDefault


class ResilientClient:
    """``httpx.AsyncClient`` assembled from a :class:`ResilienceConfig`.

    Retries happen inside the transport, so a response or exception that reaches
    the caller is final. ``transport`` replaces the network transport underneath
    the retry layer.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter: AbstractAsyncContextManager[object] = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit is not None
            else nullcontext()
        )
        self._client = _build_client(config, transport)

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
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        async with self._limiter:
            log.debug("%s %s %s", self.config.name, method, url)
            return await self._client.request(method, url, **kwargs)

    async def get(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def put(self, url: URLTypes, **kwargs: Unpack[RequestOptions]) -> httpx.Response:
        return await self.request("PUT", url, **kwargs)


def _build_client(
    config: ResilienceConfig, inner: httpx.AsyncBaseTransport | None
) -> httpx.AsyncClient:
    transport = RetryTransport(transport=inner, retry=_build_retry(config.retry))
    headers = dict(config.default_headers or {})
    storage = _build_cache_storage(config.cache)
    if storage is not None:
        return AsyncCacheClient(
            base_url=config.base_url or "",
            timeout=config.timeout_seconds,
            headers=headers,
            transport=transport,
            storage=storage,
        )
    return httpx.AsyncClient(
        base_url=config.base_url or "",
        timeout=config.timeout_seconds,
        headers=headers,
        transport=transport,
    )


def _build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        backoff_jitter=policy.backoff_jitter,
    )


def _build_cache_storage(config: CacheConfig | None) -> AsyncSqliteStorage | None:
    if config is None:
        return None
    match config.backend:
        case "sqlite":
            database_path = config.sqlite_path or str(get_storage_config().http_cache_path())
        case "memory":
            database_path = ":memory:"
        case _:
            raise ValueError(f"Unsupported cache backend: {config.backend}")
    log.debug("HTTP cache enabled at %s", database_path)
    return AsyncSqliteStorage(
        database_path=database_path,
        default_ttl=config.default_ttl_seconds,
    )


__all__ = ["RequestOptions", "ResilientClient"]
