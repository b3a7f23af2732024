"""Ports for talking to the remote forum."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from topicstream.domain.model import FeedKind

if TYPE_CHECKING:
    from topicstream.domain.model import Author, BookmarkIntent, Topic


@dataclass(frozen=True, slots=True)
class FeedQuery:
    """Which topic list to pull."""

    feed: FeedKind = FeedKind.LATEST
    category_id: int | None = None

    def __post_init__(self) -> None:
        if self.feed is FeedKind.CATEGORY and self.category_id is None:
            raise ValueError("A category feed query needs a category_id")


@dataclass(slots=True)
class FetchedCollection:
    """One successful pull of a topic list, in remote order."""

    topics: list[Topic] = field(default_factory=list["Topic"])
    authors: list[Author] = field(default_factory=list["Author"])


@runtime_checkable
class RemoteGateway(Protocol):
    """Remote forum capability.

    Implementations retry transient failures themselves and raise
    :class:`~topicstream.domain.errors.FetchError` once they give up.
    """

    async def fetch_collection(self, query: FeedQuery) -> FetchedCollection: ...

    async def fetch_bookmark_set(self) -> frozenset[int]: ...

    async def mutate_bookmark(self, topic_id: int, intent: BookmarkIntent) -> None: ...

    async def report_read(self, topic_id: int, sequence: int) -> None: ...


__all__ = ["FeedQuery", "FetchedCollection", "RemoteGateway"]
