"""Merge freshly fetched collections into canonical state."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from topicstream.domain.model import MergeMode

if TYPE_CHECKING:
    from topicstream.domain.model import Author, CanonicalState, Topic
    from topicstream.domain.ports.fetching import FetchedCollection

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MergeResult:
    state: CanonicalState
    delta_ids: frozenset[int]


@dataclass(slots=True)
class MergeEngine:
    """Replace remote content in state and report which topic ids are new.

    ``seen_ids`` is session memory: it grows with every merge, is never
    persisted and never shrinks, so the delta stays correct even when polls
    complete out of order or the user switches feeds.
    """

    seen_ids: set[int] = field(default_factory=set[int])

    def merge(
        self,
        state: CanonicalState,
        fetched: FetchedCollection,
        *,
        mode: MergeMode = MergeMode.REPLACE,
    ) -> MergeResult:
        topics = _index_topics(fetched.topics)
        if mode is MergeMode.APPEND:
            for topic_id, existing in state.topics.items():
                topics.setdefault(topic_id, existing)

        authors = _index_authors(fetched.authors)
        delta = frozenset(topic_id for topic_id in topics if topic_id not in self.seen_ids)
        self.seen_ids.update(topics)

        log.debug(
            "Merged %s topics (%s new, mode=%s, %s authors)",
            len(topics),
            len(delta),
            mode,
            len(authors),
        )
        return MergeResult(state=state.with_content(topics, authors), delta_ids=delta)


def _index_topics(topics: list[Topic]) -> dict[int, Topic]:
    indexed: dict[int, Topic] = {}
    for topic in topics:
        # Remote pages occasionally repeat a topic (pinned + latest); first wins.
        indexed.setdefault(topic.id, topic)
    return indexed


def _index_authors(authors: list[Author]) -> dict[int, Author]:
    return {author.id: author for author in authors}


__all__ = ["MergeEngine", "MergeResult"]
