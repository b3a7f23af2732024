"""Derive the filtered, sorted topic list that views render."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from topicstream.domain.keywords import matches_any, parse_keywords
from topicstream.domain.model import (
    DEFAULT_CATEGORY_INDEX,
    ReadStatusAction,
    SortMode,
    category_slug,
)

from .read_status import is_read

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import datetime

    from topicstream.domain.model import CanonicalState, Category, FeedConfig, Topic
    from topicstream.domain.time_windows import TimeWindow

log = logging.getLogger(__name__)

# Topics with this many replies or fewer are dropped by the quality filter.
QUALITY_REPLY_THRESHOLD = 10

_SORT_KEYS: dict[SortMode, Callable[[Topic], object]] = {
    SortMode.LATEST: lambda topic: topic.last_activity_at,
    SortMode.CREATED: lambda topic: topic.created_at,
    SortMode.VIEWS: lambda topic: topic.view_count,
    SortMode.REPLIES: lambda topic: topic.reply_count,
}


def project(
    state: CanonicalState,
    config: FeedConfig,
    sort_mode: SortMode,
    *,
    categories: Mapping[int, Category] = DEFAULT_CATEGORY_INDEX,
) -> list[Topic]:
    """Filter ``state.topics`` through every configured stage, then sort descending.

    Stages run in a fixed order: category block-list, keyword blacklist, quality
    threshold, read-hide. A topic has to pass all of them. Ties keep remote order.
    """

    blocked = frozenset(config.block_categories)
    blacklist = parse_keywords(config.keyword_blacklist)
    hide_read = config.read_status_action is ReadStatusAction.HIDE
    # Read-hide consults the projected config, not whatever the state carries.
    read_state = state if state.config is config else state.with_config(config)

    visible: list[Topic] = []
    for topic in state.topics.values():
        if blocked and category_slug(topic.category_id, categories) in blocked:
            continue
        if blacklist and matches_any(topic.title, blacklist):
            continue
        if config.quality_filter and topic.reply_count <= QUALITY_REPLY_THRESHOLD:
            continue
        if hide_read and is_read(read_state, topic):
            continue
        visible.append(topic)

    log.debug("Projected %s of %s topics (sort=%s)", len(visible), len(state.topics), sort_mode)
    return sorted(visible, key=_SORT_KEYS[SortMode(sort_mode)], reverse=True)


def is_new(topic: Topic, state: CanonicalState, *, now: datetime, window: TimeWindow) -> bool:
    """Return whether ``topic`` deserves the "new" marker."""

    return window.contains(topic.created_at, now=now) and not is_read(state, topic)


__all__ = ["QUALITY_REPLY_THRESHOLD", "is_new", "project"]
