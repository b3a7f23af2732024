"""Read-status transitions.

A topic counts as read when the user read it in this client, or, with
``sync_read_status`` on, when the forum says the viewer has already seen its
last post. The second condition never writes to ``read_ids``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from topicstream.domain.model import CanonicalState, Topic


def mark_read(state: CanonicalState, topic_id: int) -> CanonicalState:
    if topic_id in state.read_ids:
        return state
    return state.with_read_ids(state.read_ids | {topic_id})


def unmark_read(state: CanonicalState, topic_id: int) -> CanonicalState:
    if topic_id not in state.read_ids:
        return state
    return state.with_read_ids(state.read_ids - {topic_id})


def is_remotely_read(topic: Topic) -> bool:
    seen = topic.viewer_last_seen_sequence
    return seen is not None and seen >= topic.highest_seen_sequence


def is_read(state: CanonicalState, topic: Topic) -> bool:
    if topic.id in state.read_ids:
        return True
    return state.config.sync_read_status and is_remotely_read(topic)


def unread_count(state: CanonicalState, topics: Iterable[Topic]) -> int:
    """Number of ``topics`` not in the local read set, for the toolbar badge."""

    if not state.config.show_badge:
        return 0
    return sum(1 for topic in topics if topic.id not in state.read_ids)


__all__ = ["is_read", "is_remotely_read", "mark_read", "unmark_read", "unread_count"]
