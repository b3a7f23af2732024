"""Translate Discourse payloads into domain entities."""

from __future__ import annotations

from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from topicstream.domain.model import Author, Topic
from topicstream.domain.ports.fetching import FetchedCollection

if TYPE_CHECKING:
    from .schema import PosterPayload, TopicListResponse, TopicPayload, UserPayload

log = getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def resolve_last_author_id(posters: list[PosterPayload]) -> int | None:
    """The poster flagged ``latest`` wins; otherwise the last one listed."""

    for poster in posters:
        if poster.is_latest and poster.user_id is not None:
            return poster.user_id
    for poster in reversed(posters):
        if poster.user_id is not None:
            return poster.user_id
    return None


def parse_topic(payload: TopicPayload) -> Topic:
    created_at = _as_utc(payload.created_at)
    last_posted_at = _as_utc(payload.last_posted_at) if payload.last_posted_at else created_at
    return Topic(
        id=payload.id,
        title=payload.title,
        created_at=created_at,
        last_activity_at=last_posted_at,
        category_id=payload.category_id,
        tags=tuple(tag for tag in payload.tags if tag),
        view_count=max(payload.views, 0),
        reply_count=max(payload.posts_count, 0),
        last_author_id=resolve_last_author_id(payload.posters),
        highest_seen_sequence=max(payload.highest_post_number, 0),
        viewer_last_seen_sequence=payload.last_read_post_number,
        slug=payload.slug,
        excerpt=payload.excerpt,
        last_poster_username=payload.last_poster_username,
    )


def parse_author(payload: UserPayload) -> Author:
    return Author(
        id=payload.id,
        trust_level=payload.trust_level,
        is_admin=payload.admin,
        username=payload.username,
    )


def parse_topic_list(response: TopicListResponse) -> FetchedCollection:
    collection = FetchedCollection(
        topics=[parse_topic(topic) for topic in response.topics],
        authors=[parse_author(user) for user in response.users],
    )
    log.debug(
        "Parsed %s topics and %s users", len(collection.topics), len(collection.authors)
    )
    return collection
