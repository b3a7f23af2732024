"""Optimistic bookmark toggling reconciled against the remote bookmark list.

Local ``bookmark_ids`` change as soon as the user toggles. The remote call runs
afterwards; while it is in flight, the topic is *pending*:

* further toggles on the same topic only update local state and remember the
  latest intent (one outstanding mutation per topic);
* remote snapshots do not override the local membership of pending topics, nor
  of topics whose mutation started or settled while the snapshot was in flight;
* once the call is acknowledged, the latest intent is sent only if it differs
  from what the remote now holds;
* if the call fails, membership reverts to the last acknowledged value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from topicstream.domain.model import BookmarkIntent

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from topicstream.domain.model import CanonicalState

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BookmarkOperation:
    """Remote mutation that makes the remote match a local toggle."""

    kind: BookmarkIntent
    topic_id: int

    @classmethod
    def towards(cls, topic_id: int, *, bookmarked: bool) -> BookmarkOperation:
        kind = BookmarkIntent.ADD if bookmarked else BookmarkIntent.REMOVE
        return cls(kind=kind, topic_id=topic_id)


def toggle(state: CanonicalState, topic_id: int) -> tuple[CanonicalState, BookmarkOperation]:
    bookmarked = topic_id not in state.bookmark_ids
    if bookmarked:
        updated = state.bookmark_ids | {topic_id}
    else:
        updated = state.bookmark_ids - {topic_id}
    operation = BookmarkOperation.towards(topic_id, bookmarked=bookmarked)
    return state.with_bookmark_ids(frozenset(updated)), operation


def apply_bookmark_snapshot(
    state: CanonicalState,
    snapshot: Iterable[int],
    *,
    keep_local: Collection[int] = (),
) -> CanonicalState:
    """Adopt the remote bookmark list, except for the topics in ``keep_local``."""

    remote = {topic_id for topic_id in snapshot if topic_id not in keep_local}
    local = {topic_id for topic_id in state.bookmark_ids if topic_id in keep_local}
    return state.with_bookmark_ids(frozenset(remote | local))


@dataclass(slots=True)
class _PendingMutation:
    in_flight: BookmarkOperation
    confirmed: bool
    desired: bool


class BookmarkReconciler:
    """Tracks in-flight bookmark mutations, at most one per topic."""

    def __init__(self) -> None:
        self._pending: dict[int, _PendingMutation] = {}
        # Mutation activity per topic, stamped while any snapshot is outstanding.
        self._tick = 0
        self._touched: dict[int, int] = {}
        self._open_snapshots = 0

    @property
    def pending_ids(self) -> frozenset[int]:
        return frozenset(self._pending)

    def is_pending(self, topic_id: int) -> bool:
        return topic_id in self._pending

    def begin(self, operation: BookmarkOperation) -> bool:
        """Register a local toggle.

        Returns ``True`` when the caller should send ``operation`` now and
        ``False`` when it was coalesced into an already running mutation.
        """

        self._touch(operation.topic_id)
        desired = operation.kind is BookmarkIntent.ADD
        pending = self._pending.get(operation.topic_id)
        if pending is not None:
            pending.desired = desired
            log.debug("Coalesced bookmark %s for topic %s", operation.kind, operation.topic_id)
            return False
        self._pending[operation.topic_id] = _PendingMutation(
            in_flight=operation,
            confirmed=not desired,
            desired=desired,
        )
        return True

    def acknowledge(self, topic_id: int) -> BookmarkOperation | None:
        """Record remote success; return the follow-up operation, if one is needed."""

        self._touch(topic_id)
        pending = self._pending[topic_id]
        pending.confirmed = pending.in_flight.kind is BookmarkIntent.ADD
        if pending.desired == pending.confirmed:
            del self._pending[topic_id]
            return None
        pending.in_flight = BookmarkOperation.towards(topic_id, bookmarked=pending.desired)
        return pending.in_flight

    def fail(self, state: CanonicalState, topic_id: int) -> CanonicalState:
        """Drop the pending mutation and restore the last acknowledged membership."""

        self._touch(topic_id)
        pending = self._pending.pop(topic_id)
        if pending.confirmed:
            restored = state.bookmark_ids | {topic_id}
        else:
            restored = state.bookmark_ids - {topic_id}
        return state.with_bookmark_ids(frozenset(restored))

    def open_snapshot(self) -> int:
        """Mark the start of a remote bookmark fetch; pass the result to :meth:`close_snapshot`."""

        self._open_snapshots += 1
        return self._tick

    def close_snapshot(self, marker: int) -> frozenset[int]:
        """Return the topics whose local membership must survive the snapshot.

        Those are the topics still pending plus every topic whose mutation began,
        was acknowledged or failed after ``marker``: the remote may have answered
        from a list taken before that change.
        """

        keep = {topic_id for topic_id, tick in self._touched.items() if tick > marker}
        self._open_snapshots -= 1
        if self._open_snapshots == 0:
            self._touched.clear()
        return frozenset(keep) | self.pending_ids

    def _touch(self, topic_id: int) -> None:
        if self._open_snapshots:
            self._tick += 1
            self._touched[topic_id] = self._tick


__all__ = [
    "BookmarkOperation",
    "BookmarkReconciler",
    "apply_bookmark_snapshot",
    "toggle",
]
