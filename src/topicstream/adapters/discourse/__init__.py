"""Public interface for the Discourse adapter."""

from __future__ import annotations

from .client import DiscourseGateway, feed_path
from .schema import TopicListResponse, TopicPayload, UserBookmarksResponse, UserPayload
from .translator import parse_author, parse_topic, parse_topic_list, resolve_last_author_id

__all__ = [
    "DiscourseGateway",
    "TopicListResponse",
    "TopicPayload",
    "UserBookmarksResponse",
    "UserPayload",
    "feed_path",
    "parse_author",
    "parse_topic",
    "parse_topic_list",
    "resolve_last_author_id",
]
