"""HTTP gateway to a Discourse forum."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Unpack

import httpx
from pydantic import ValidationError

from topicstream.adapters.http_resilience import ResilientClient
from topicstream.config.forum import ForumConfig, get_forum_config
from topicstream.domain.errors import FetchError
from topicstream.domain.model import (
    DEFAULT_CATEGORY_INDEX,
    BookmarkIntent,
    FeedKind,
    category_slug,
)
from topicstream.domain.ports.fetching import RemoteGateway

from .schema import TopicListResponse, UserBookmarksResponse
from .translator import parse_topic_list

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from types import TracebackType

    from topicstream.adapters.http_resilience import RequestOptions
    from topicstream.config.http_resilience import ResilienceConfig
    from topicstream.domain.model import Category
    from topicstream.domain.ports.fetching import FeedQuery, FetchedCollection

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _default_categories() -> Mapping[int, Category]:
    return DEFAULT_CATEGORY_INDEX


def feed_path(query: FeedQuery, categories: Mapping[int, Category] = DEFAULT_CATEGORY_INDEX) -> str:
    """Relative URL of the topic list ``query`` asks for."""

    if query.feed is FeedKind.TOP:
        return "/top.json"
    if query.feed is FeedKind.CATEGORY:
        slug = category_slug(query.category_id, categories)
        if slug is None:
            return f"/c/{query.category_id}.json"
        return f"/c/{slug}/{query.category_id}.json"
    return "/latest.json"


@dataclass(slots=True)
class DiscourseGateway:
    """:class:`RemoteGateway` over the forum's JSON endpoints.

    One :class:`ResilientClient` is created lazily and reused until
    :meth:`aclose`; it owns retry, timeout and rate limiting. Everything that
    still fails is raised as :class:`FetchError`.
    """

    config: ForumConfig = field(default_factory=get_forum_config)
    categories: Mapping[int, Category] = field(default_factory=_default_categories)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    _client: ResilientClient | None = field(default=None, init=False, repr=False)

    async def __aenter__(self) -> DiscourseGateway:
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
            client, self._client = self._client, None
            await client.aclose()

    async def fetch_collection(self, query: FeedQuery) -> FetchedCollection:
        path = feed_path(query, self.categories)
        payload = await self._request_json("GET", path)
        try:
            response = TopicListResponse.model_validate(payload)
        except ValidationError as exc:
            raise FetchError(f"Unexpected topic list payload from {path}") from exc
        return parse_topic_list(response)

    async def fetch_bookmark_set(self) -> frozenset[int]:
        payload = await self._request_json("GET", "/user_bookmarks.json")
        try:
            response = UserBookmarksResponse.model_validate(payload)
        except ValidationError as exc:
            raise FetchError("Unexpected bookmark list payload") from exc
        return response.topic_ids()

    async def mutate_bookmark(self, topic_id: int, intent: BookmarkIntent) -> None:
        # DELETE /bookmarks/{id} takes a bookmark id, not a topic id; removal goes
        # through the topic instead.
        if intent is BookmarkIntent.ADD:
            await self._request(
                "POST",
                "/bookmarks.json",
                data={"bookmarkable_id": str(topic_id), "bookmarkable_type": "Topic"},
            )
        else:
            await self._request("PUT", f"/t/{topic_id}/remove_bookmarks.json")
        log.info("Bookmark %s for topic %s accepted", intent, topic_id)

    async def report_read(self, topic_id: int, sequence: int) -> None:
        await self._request(
            "POST",
            "/topics/read",
            data={"topic_id": str(topic_id), "post_number": str(sequence)},
        )

    def _get_client(self) -> ResilientClient:
        if self._client is None:
            self._client = self.client_factory(self.config.resolved_resilience())
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        client = self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            log.warning(f"{method} {path} failed with HTTP {status}")
            raise FetchError(f"{method} {path} returned HTTP {status}", status_code=status) from exc
        except httpx.HTTPError as exc:
            log.warning(f"{method} {path} failed: {exc!r}")
            raise FetchError(f"{method} {path} failed: {exc}") from exc
        return response

    async def _request_json(self, method: str, path: str) -> object:
        response = await self._request(method, path)
        try:
            return response.json()
        except ValueError as exc:
            raise FetchError(f"{method} {path} did not return JSON") from exc


if TYPE_CHECKING:
    _gateway_check: RemoteGateway = DiscourseGateway()
