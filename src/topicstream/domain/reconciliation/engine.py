"""The reconciliation core: single owner of canonical state for a session.

The core composes the pure transitions (merge, read status, bookmarks,
projection, notification decisions) with the three ports. Every user action
and every poll replaces ``state`` with a new value; nothing else mutates it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, TypeVar

from pydantic import ValidationError

from topicstream.domain.errors import ConflictError, FetchError, PersistenceError
from topicstream.domain.model import (
    DEFAULT_CATEGORY_INDEX,
    DEFAULT_CONFIG,
    DEFAULT_USER_SETTINGS,
    BookmarkIntent,
    CanonicalState,
    FeedConfig,
    FeedKind,
    FeedSelection,
    MergeMode,
    UserSettings,
)
from topicstream.domain.notifications import NotificationState, decide
from topicstream.domain.ports.fetching import FeedQuery
from topicstream.domain.ports.persistence import (
    BOOKMARK_IDS_KEY,
    CONFIG_KEY,
    READ_TOPIC_IDS_KEY,
    USER_SETTINGS_KEY,
)
from topicstream.domain.time_windows import TimeWindow, utcnow

from .bookmarks import BookmarkOperation, BookmarkReconciler, apply_bookmark_snapshot, toggle
from .merge import MergeEngine
from .projection import is_new, project
from .read_status import mark_read, unmark_read, unread_count

if TYPE_CHECKING:
    from collections.abc import Mapping

    from topicstream.domain.model import Category, Topic
    from topicstream.domain.ports.fetching import RemoteGateway
    from topicstream.domain.ports.notifying import NotificationSink
    from topicstream.domain.ports.persistence import PersistentStore
    from topicstream.domain.time_windows import Clock

log = logging.getLogger(__name__)

T = TypeVar("T", FeedConfig, UserSettings)


@dataclass(frozen=True, slots=True)
class PollResult:
    """Outcome of one poll cycle. A failed poll still carries the current view."""

    ok: bool
    view: list[Topic] = field(default_factory=list["Topic"])
    delta_ids: frozenset[int] = frozenset()
    notified: tuple[Topic, ...] = ()
    unread_count: int = 0
    error: FetchError | None = None


@dataclass(frozen=True, slots=True)
class BookmarkToggleResult:
    topic_id: int
    bookmarked: bool
    operation: BookmarkOperation
    coalesced: bool = False
    error: ConflictError | None = None


def query_for(settings: UserSettings) -> FeedQuery | None:
    """Map the filter-bar selection onto a feed query; ``None`` means no topic feed."""

    selection = settings.category_filter
    if selection is FeedSelection.ALL:
        return FeedQuery(feed=FeedKind.LATEST)
    if selection is FeedSelection.TOP:
        return FeedQuery(feed=FeedKind.TOP)
    if selection is FeedSelection.CATEGORIES:
        return FeedQuery(feed=FeedKind.CATEGORY, category_id=settings.sub_category_filter)
    return None


class ReconciliationCore:
    """Holds the canonical state and drives every transition on it."""

    def __init__(
        self,
        *,
        gateway: RemoteGateway,
        store: PersistentStore,
        sink: NotificationSink | None = None,
        clock: Clock = utcnow,
        recency_window: timedelta = timedelta(hours=4),
        cooldown_ms: int = 5000,
        categories: Mapping[int, Category] = DEFAULT_CATEGORY_INDEX,
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._sink = sink
        self._clock = clock
        self._recency = TimeWindow(recency_window)
        self._categories = categories
        self._state = CanonicalState()
        self._merge = MergeEngine()
        self._bookmarks = BookmarkReconciler()
        self._notification_state = NotificationState(cooldown_ms=cooldown_ms)
        self._reports: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> CanonicalState:
        return self._state

    @property
    def notification_state(self) -> NotificationState:
        return self._notification_state

    @property
    def pending_bookmark_ids(self) -> frozenset[int]:
        return self._bookmarks.pending_ids

    # -- session lifecycle -------------------------------------------------

    async def load(self) -> CanonicalState:
        """Restore persisted options and status sets, then reconcile bookmarks."""

        self._state = CanonicalState(
            read_ids=self._load_ids(READ_TOPIC_IDS_KEY),
            bookmark_ids=self._load_ids(BOOKMARK_IDS_KEY),
            config=self._load_options(CONFIG_KEY, FeedConfig, DEFAULT_CONFIG),
            settings=self._load_options(USER_SETTINGS_KEY, UserSettings, DEFAULT_USER_SETTINGS),
        )
        log.info(
            "Loaded state: %s read, %s bookmarked, feed=%s",
            len(self._state.read_ids),
            len(self._state.bookmark_ids),
            self._state.settings.category_filter,
        )
        await self.sync_bookmarks()
        return self._state

    async def sync_bookmarks(self) -> bool:
        """Reconcile ``bookmark_ids`` with the remote list; keep the local set on failure."""

        marker = self._bookmarks.open_snapshot()
        try:
            snapshot = await self._gateway.fetch_bookmark_set()
        except FetchError as exc:
            log.warning(
                "Remote bookmarks unavailable, keeping %s local ones: %s",
                len(self._state.bookmark_ids),
                exc,
            )
            return False
        finally:
            keep_local = self._bookmarks.close_snapshot(marker)
        updated = apply_bookmark_snapshot(self._state, snapshot, keep_local=keep_local)
        if updated.bookmark_ids != self._state.bookmark_ids:
            self._set_bookmark_ids(updated)
        return True

    async def poll(self, *, mode: MergeMode = MergeMode.REPLACE) -> PollResult:
        """Run one fetch, merge, notify and project cycle."""

        query = query_for(self._state.settings)
        if query is None:
            ok = await self.sync_bookmarks()
            view = self.view()
            return PollResult(ok=ok, view=view, unread_count=unread_count(self._state, view))

        try:
            fetched = await self._gateway.fetch_collection(query)
        except FetchError as exc:
            log.warning("Poll of %s failed: %s", query.feed, exc)
            view = self.view()
            return PollResult(
                ok=False,
                view=view,
                unread_count=unread_count(self._state, view),
                error=exc,
            )

        # Read after the await so user actions taken during the fetch survive.
        merged = self._merge.merge(self._state, fetched, mode=mode)
        self._state = merged.state
        notified = await self._notify(merged.delta_ids)
        view = self.view()
        return PollResult(
            ok=True,
            view=view,
            delta_ids=merged.delta_ids,
            notified=notified,
            unread_count=unread_count(self._state, view),
        )

    async def aclose(self) -> None:
        """Wait for outstanding read reports."""

        if self._reports:
            await asyncio.gather(*self._reports, return_exceptions=True)

    # -- views ---------------------------------------------------------------

    def view(self) -> list[Topic]:
        topics = project(
            self._state,
            self._state.config,
            self._state.sort_mode,
            categories=self._categories,
        )
        if self._state.settings.category_filter is FeedSelection.BOOKMARKS:
            return [topic for topic in topics if topic.id in self._state.bookmark_ids]
        return topics

    def unread_count(self) -> int:
        return unread_count(self._state, self.view())

    def is_new(self, topic: Topic) -> bool:
        return is_new(topic, self._state, now=self._clock(), window=self._recency)

    # -- read status ---------------------------------------------------------

    async def mark_read(self, topic_id: int, *, sequence: int | None = None) -> CanonicalState:
        """Mark ``topic_id`` read locally and report it to the forum in the background.

        The report uses ``sequence`` when given, else the highest post number
        seen for the topic in the current state.
        """

        updated = mark_read(self._state, topic_id)
        if updated is not self._state:
            self._state = updated
            self._persist_ids(READ_TOPIC_IDS_KEY, updated.read_ids)
        self._schedule_read_report(topic_id, sequence)
        return self._state

    def unmark_read(self, topic_id: int) -> CanonicalState:
        updated = unmark_read(self._state, topic_id)
        if updated is not self._state:
            self._state = updated
            self._persist_ids(READ_TOPIC_IDS_KEY, updated.read_ids)
        return self._state

    def _schedule_read_report(self, topic_id: int, sequence: int | None) -> None:
        if not self._state.config.sync_read_status:
            return
        if sequence is None:
            topic = self._state.topics.get(topic_id)
            sequence = 0 if topic is None else topic.highest_seen_sequence
        if sequence <= 0:
            log.debug("Not reporting read status for topic %s", topic_id)
            return
        task = asyncio.create_task(self._report_read(topic_id, sequence))
        self._reports.add(task)
        task.add_done_callback(self._reports.discard)

    async def _report_read(self, topic_id: int, sequence: int) -> None:
        try:
            await self._gateway.report_read(topic_id, sequence)
        except FetchError as exc:
            log.warning("Failed to report topic %s as read: %s", topic_id, exc)

    # -- bookmarks -----------------------------------------------------------

    async def toggle_bookmark(self, topic_id: int) -> BookmarkToggleResult:
        """Flip the bookmark locally, then push the change to the forum.

        A toggle on a topic whose previous change is still in flight only
        updates local state; the running call sends the final intent once it
        completes.
        """

        updated, operation = toggle(self._state, topic_id)
        self._set_bookmark_ids(updated)
        bookmarked = operation.kind is BookmarkIntent.ADD
        if not self._bookmarks.begin(operation):
            return BookmarkToggleResult(
                topic_id=topic_id,
                bookmarked=bookmarked,
                operation=operation,
                coalesced=True,
            )
        error = await self._send_bookmark(operation)
        return BookmarkToggleResult(
            topic_id=topic_id,
            bookmarked=topic_id in self._state.bookmark_ids,
            operation=operation,
            error=error,
        )

    async def _send_bookmark(self, operation: BookmarkOperation) -> ConflictError | None:
        current: BookmarkOperation | None = operation
        while current is not None:
            try:
                await self._gateway.mutate_bookmark(current.topic_id, current.kind)
            except FetchError as exc:
                self._set_bookmark_ids(self._bookmarks.fail(self._state, current.topic_id))
                conflict = ConflictError(current.topic_id, current.kind, cause=exc)
                log.warning("%s: %s", conflict, exc)
                return conflict
            current = self._bookmarks.acknowledge(current.topic_id)
        return None

    def _set_bookmark_ids(self, updated: CanonicalState) -> None:
        self._state = self._state.with_bookmark_ids(updated.bookmark_ids)
        self._persist_ids(BOOKMARK_IDS_KEY, updated.bookmark_ids)

    # -- options -------------------------------------------------------------

    def update_config(self, **changes: object) -> FeedConfig:
        """Validate and apply config changes; raises ``ValueError`` on bad input."""

        config = self._state.config.with_changes(**changes)
        self._state = self._state.with_config(config)
        self._persist(CONFIG_KEY, config.to_document())
        return config

    def reset_config(self) -> FeedConfig:
        self._state = self._state.with_config(DEFAULT_CONFIG)
        self._persist(CONFIG_KEY, DEFAULT_CONFIG.to_document())
        return DEFAULT_CONFIG

    def update_settings(self, **changes: object) -> UserSettings:
        settings = self._state.settings.with_changes(**changes)
        self._state = self._state.with_settings(settings)
        self._persist(USER_SETTINGS_KEY, settings.to_document())
        return settings

    def set_auto_poll(self, enabled: bool) -> UserSettings:
        return self.update_settings(auto_refresh_enabled=enabled)

    def reset_cooldown(self) -> None:
        self._notification_state = self._notification_state.reset()

    # -- notifications -------------------------------------------------------

    async def _notify(self, delta_ids: frozenset[int]) -> tuple[Topic, ...]:
        decision = decide(
            delta_ids,
            self._state,
            self._state.config.notify_keywords,
            self._notification_state,
            now=self._clock(),
            recency=self._recency,
        )
        self._notification_state = decision.state
        if self._sink is None:
            return decision.topics
        for topic in decision.topics:
            try:
                await self._sink.notify(topic.title)
            except Exception:  # noqa: BLE001
                log.warning("Notification for topic %s failed", topic.id, exc_info=True)
        return decision.topics

    # -- persistence ---------------------------------------------------------

    def _read(self, key: str) -> object | None:
        try:
            return self._store.get(key)
        except PersistenceError as exc:
            log.warning("Could not read %r, using defaults: %s", key, exc)
            return None

    def _load_options(
        self, key: str, model: type[T], default: T
    ) -> T:
        value = self._read(key)
        if value is None:
            return default
        try:
            return model.model_validate(value)
        except ValidationError as exc:
            log.warning("Ignoring invalid %r: %s", key, exc)
            return default

    def _load_ids(self, key: str) -> frozenset[int]:
        value = self._read(key)
        if value is None:
            return frozenset()
        if not isinstance(value, list | tuple):
            log.warning("Ignoring %r: expected a list of topic ids", key)
            return frozenset()
        ids: set[int] = set()
        for item in value:
            if isinstance(item, int) and not isinstance(item, bool):
                ids.add(item)
            else:
                log.warning("Skipping invalid topic id %r in %r", item, key)
        return frozenset(ids)

    def _persist(self, key: str, value: object) -> None:
        try:
            self._store.put(key, value)
        except PersistenceError as exc:
            log.warning("Could not persist %r, continuing in memory: %s", key, exc)

    def _persist_ids(self, key: str, ids: frozenset[int]) -> None:
        self._persist(key, sorted(ids))


__all__ = ["BookmarkToggleResult", "PollResult", "ReconciliationCore", "query_for"]
