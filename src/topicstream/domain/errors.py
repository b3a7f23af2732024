"""Error taxonomy of the reconciliation core.

None of these are fatal: the worst outcome of any of them is stale or unsynced
state. ``FetchError`` and ``PersistenceError`` are raised by adapters and caught by
the core; ``ConflictError`` is only ever returned, never raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from topicstream.domain.model import BookmarkIntent


class TopicStreamError(RuntimeError):
    """Base class for domain errors."""


class FetchError(TopicStreamError):
    """A remote call failed after the gateway exhausted its retries."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(TopicStreamError):
    """Reading from or writing to the persistent store failed."""


class ConflictError(TopicStreamError):
    """An optimistic bookmark change was rolled back after the remote refused it."""

    def __init__(self, topic_id: int, intent: BookmarkIntent, *, cause: Exception | None = None):
        super().__init__(f"Bookmark {intent} for topic {topic_id} was rolled back")
        self.topic_id = topic_id
        self.intent = intent
        self.cause = cause
