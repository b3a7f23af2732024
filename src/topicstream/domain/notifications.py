"""Decide which freshly merged topics should raise a notification."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from topicstream.domain.keywords import matches_any, parse_keywords

if TYPE_CHECKING:
    from collections.abc import Collection
    from datetime import datetime

    from topicstream.domain.model import CanonicalState, Topic
    from topicstream.domain.time_windows import TimeWindow

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NotificationState:
    """Session-wide cooldown bookkeeping."""

    last_fired_at: datetime | None = None
    cooldown_ms: int = 5000

    def cooling_down(self, now: datetime) -> bool:
        if self.last_fired_at is None:
            return False
        elapsed_ms = (now - self.last_fired_at).total_seconds() * 1000
        return elapsed_ms < self.cooldown_ms

    def reset(self) -> NotificationState:
        return replace(self, last_fired_at=None)


@dataclass(frozen=True, slots=True)
class NotificationDecision:
    topics: tuple[Topic, ...]
    state: NotificationState

    @property
    def fired(self) -> bool:
        return bool(self.topics)


def decide(
    delta_ids: Collection[int],
    state: CanonicalState,
    keyword_spec: str | None,
    notification_state: NotificationState,
    *,
    now: datetime,
    recency: TimeWindow,
) -> NotificationDecision:
    """Pick the new, unread, recent topics whose title matches a keyword.

    Nothing fires while the global cooldown is running. When something fires,
    ``last_fired_at`` moves to ``now`` once for the whole batch.
    """

    keywords = parse_keywords(keyword_spec)
    if not keywords or not delta_ids:
        return NotificationDecision(topics=(), state=notification_state)
    if notification_state.cooling_down(now):
        log.debug("Notification cooldown active; skipping %s new topics", len(delta_ids))
        return NotificationDecision(topics=(), state=notification_state)

    matched = tuple(
        topic
        for topic_id, topic in state.topics.items()
        if topic_id in delta_ids
        and topic_id not in state.read_ids
        and recency.contains(topic.created_at, now=now)
        and matches_any(topic.title, keywords)
    )
    if not matched:
        return NotificationDecision(topics=(), state=notification_state)
    return NotificationDecision(
        topics=matched,
        state=replace(notification_state, last_fired_at=now),
    )


__all__ = ["NotificationDecision", "NotificationState", "decide"]
