from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

import pytest

from topicstream.adapters.memory import InMemoryPersistentStore
from topicstream.domain.errors import ConflictError, FetchError
from topicstream.domain.model import (
    Author,
    BookmarkIntent,
    FeedKind,
    FeedSelection,
    MergeMode,
    ReadStatusAction,
    SortMode,
    UserSettings,
)
from topicstream.domain.ports import FeedQuery
from topicstream.domain.reconciliation import ReconciliationCore, query_for
from tests.helpers.forum import (
    NOW,
    FailingStore,
    FakeClock,
    FakeGateway,
    FakeSink,
    make_collection,
    make_topic,
)


def test_load_restores_persisted_state(gateway: FakeGateway, sink: FakeSink) -> None:
    store = InMemoryPersistentStore(
        {
            "config": {"notifyKeywords": "ai", "readStatusAction": "hide"},
            "userSettings": {"categoryFilter": "top", "sortFilter": "views"},
            "readTopicIds": [1, 2],
            "bookmarkIds": [9],
        }
    )
    gateway.bookmarks = FetchError("offline")
    core = ReconciliationCore(gateway=gateway, store=store, sink=sink)

    state = asyncio.run(core.load())

    assert state.read_ids == {1, 2}
    assert state.bookmark_ids == {9}
    assert state.config.notify_keywords == "ai"
    assert state.config.read_status_action is ReadStatusAction.HIDE
    assert state.settings.category_filter is FeedSelection.TOP
    assert state.sort_mode is SortMode.VIEWS


def test_load_falls_back_to_defaults_on_invalid_values(
    gateway: FakeGateway,
    caplog: pytest.LogCaptureFixture,
) -> None:
    store = InMemoryPersistentStore(
        {
            "config": {"readStatusAction": "explode"},
            "userSettings": "not a mapping",
            "readTopicIds": [1, "two", True, 3],
            "bookmarkIds": {"nope": 1},
        }
    )
    core = ReconciliationCore(gateway=gateway, store=store)

    with caplog.at_level(logging.WARNING):
        state = asyncio.run(core.load())

    assert state.config.read_status_action is ReadStatusAction.FADE
    assert state.settings == UserSettings()
    assert state.read_ids == {1, 3}
    assert state.bookmark_ids == frozenset()
    assert "Ignoring invalid 'config'" in caplog.text


def test_load_reconciles_bookmarks_with_remote(
    gateway: FakeGateway, store: InMemoryPersistentStore
) -> None:
    store.put("bookmarkIds", [1, 2])
    gateway.bookmarks = frozenset({2, 3})
    core = ReconciliationCore(gateway=gateway, store=store)

    state = asyncio.run(core.load())

    assert state.bookmark_ids == {2, 3}
    assert store.get("bookmarkIds") == [2, 3]


def test_load_keeps_persisted_bookmarks_when_remote_fails(
    gateway: FakeGateway, store: InMemoryPersistentStore
) -> None:
    store.put("bookmarkIds", [1, 2])
    gateway.bookmarks = FetchError("HTTP 403", status_code=403)
    core = ReconciliationCore(gateway=gateway, store=store)

    state = asyncio.run(core.load())

    assert state.bookmark_ids == {1, 2}


def test_load_survives_a_failing_store(gateway: FakeGateway) -> None:
    core = ReconciliationCore(gateway=gateway, store=FailingStore())

    state = asyncio.run(core.load())

    assert state.read_ids == frozenset()


@pytest.mark.parametrize(
    ("selection", "expected"),
    [
        (FeedSelection.ALL, FeedQuery(feed=FeedKind.LATEST)),
        (FeedSelection.TOP, FeedQuery(feed=FeedKind.TOP)),
        (FeedSelection.CATEGORIES, FeedQuery(feed=FeedKind.CATEGORY, category_id=14)),
        (FeedSelection.BOOKMARKS, None),
    ],
)
def test_query_for_selection(selection: FeedSelection, expected: FeedQuery | None) -> None:
    settings = UserSettings(category_filter=selection, sub_category_filter=14)

    assert query_for(settings) == expected


def test_poll_merges_notifies_and_projects(
    core: ReconciliationCore,
    gateway: FakeGateway,
    sink: FakeSink,
) -> None:
    gateway.collection = make_collection(
        make_topic(1, "AI news", reply_count=3),
        make_topic(2, "Gardening", reply_count=8),
        authors=[Author(id=5, trust_level=3)],
    )

    async def scenario() -> None:
        await core.load()
        core.update_config(notify_keywords="ai")
        core.update_settings(sort_filter=SortMode.REPLIES)
        result = await core.poll()

        assert result.ok
        assert result.error is None
        assert result.delta_ids == {1, 2}
        assert [topic.id for topic in result.notified] == [1]
        assert [topic.id for topic in result.view] == [2, 1]
        assert result.unread_count == 2

    asyncio.run(scenario())

    assert sink.messages == ["AI news"]
    assert gateway.queries == [FeedQuery(feed=FeedKind.LATEST)]
    assert core.notification_state.last_fired_at == NOW
    assert set(core.state.authors) == {5}


def test_second_poll_reports_only_new_topics(
    core: ReconciliationCore, gateway: FakeGateway
) -> None:
    async def scenario() -> tuple[frozenset[int], frozenset[int]]:
        gateway.collection = make_collection(make_topic(1))
        first = await core.poll()
        gateway.collection = make_collection(make_topic(2), make_topic(1))
        second = await core.poll()
        return first.delta_ids, second.delta_ids

    first, second = asyncio.run(scenario())

    assert first == {1}
    assert second == {2}


def test_failed_poll_leaves_state_untouched(
    core: ReconciliationCore, gateway: FakeGateway
) -> None:
    async def scenario() -> None:
        gateway.collection = make_collection(make_topic(1), make_topic(2))
        await core.poll()
        before = core.state

        gateway.collection = FetchError("HTTP 502", status_code=502)
        result = await core.poll()

        assert not result.ok
        assert isinstance(result.error, FetchError)
        assert result.error.status_code == 502
        assert core.state is before
        assert [topic.id for topic in result.view] == [1, 2]

    asyncio.run(scenario())


def test_append_poll_keeps_earlier_topics(core: ReconciliationCore, gateway: FakeGateway) -> None:
    async def scenario() -> list[int]:
        gateway.collection = make_collection(make_topic(1))
        await core.poll()
        gateway.collection = make_collection(make_topic(2))
        await core.poll(mode=MergeMode.APPEND)
        return list(core.state.topics)

    assert asyncio.run(scenario()) == [2, 1]


def test_bookmarks_feed_only_syncs_bookmarks(
    core: ReconciliationCore, gateway: FakeGateway
) -> None:
    async def scenario() -> list[int]:
        gateway.collection = make_collection(make_topic(1), make_topic(2))
        await core.poll()
        gateway.bookmarks = frozenset({2})
        core.update_settings(category_filter=FeedSelection.BOOKMARKS)
        result = await core.poll()
        assert result.ok
        return [topic.id for topic in result.view]

    assert asyncio.run(scenario()) == [2]
    assert len(gateway.queries) == 1
    assert core.state.bookmark_ids == {2}


def test_sink_errors_are_swallowed(gateway: FakeGateway, clock: FakeClock) -> None:
    sink = FakeSink(fail=True)
    core = ReconciliationCore(
        gateway=gateway, store=InMemoryPersistentStore(), sink=sink, clock=clock
    )
    gateway.collection = make_collection(make_topic(1, "AI"))

    async def scenario() -> None:
        core.update_config(notify_keywords="ai")
        result = await core.poll()
        assert result.ok
        assert len(result.notified) == 1

    asyncio.run(scenario())

    assert sink.messages == ["AI"]


def test_cooldown_spans_polls_until_reset(
    core: ReconciliationCore,
    gateway: FakeGateway,
    sink: FakeSink,
    clock: FakeClock,
) -> None:
    async def scenario() -> None:
        core.update_config(notify_keywords="ai")
        gateway.collection = make_collection(make_topic(1, "AI one"))
        await core.poll()
        clock.advance(seconds=1)
        gateway.collection = make_collection(make_topic(2, "AI two"), make_topic(1, "AI one"))
        await core.poll()
        core.reset_cooldown()
        gateway.collection = make_collection(make_topic(3, "AI three"))
        await core.poll()

    asyncio.run(scenario())

    assert sink.messages == ["AI one", "AI three"]


def test_mark_read_persists_and_reports(
    core: ReconciliationCore,
    gateway: FakeGateway,
    store: InMemoryPersistentStore,
) -> None:
    gateway.collection = make_collection(make_topic(1, highest_seen_sequence=12))

    async def scenario() -> None:
        await core.poll()
        await core.mark_read(1)
        await core.aclose()

    asyncio.run(scenario())

    assert core.state.read_ids == {1}
    assert store.get("readTopicIds") == [1]
    assert gateway.reports == [(1, 12)]


def test_mark_read_with_explicit_sequence_reports_unknown_topic(
    core: ReconciliationCore, gateway: FakeGateway
) -> None:
    async def scenario() -> None:
        await core.mark_read(42, sequence=7)
        await core.aclose()

    asyncio.run(scenario())

    assert gateway.reports == [(42, 7)]
    assert core.state.read_ids == {42}


def test_mark_read_skips_report_when_unknown_or_disabled(
    core: ReconciliationCore, gateway: FakeGateway
) -> None:
    gateway.collection = make_collection(make_topic(1, highest_seen_sequence=0), make_topic(2))

    async def scenario() -> None:
        await core.poll()
        await core.mark_read(1)
        await core.mark_read(99)
        core.update_config(sync_read_status=False)
        await core.mark_read(2)
        await core.aclose()

    asyncio.run(scenario())

    assert gateway.reports == []
    assert core.state.read_ids == {1, 2, 99}


def test_failed_read_report_is_logged_not_rolled_back(
    core: ReconciliationCore,
    gateway: FakeGateway,
    caplog: pytest.LogCaptureFixture,
) -> None:
    gateway.collection = make_collection(make_topic(1, highest_seen_sequence=3))
    gateway.report_error = FetchError("timeout")

    async def scenario() -> None:
        await core.poll()
        await core.mark_read(1)
        await core.aclose()

    with caplog.at_level(logging.WARNING):
        asyncio.run(scenario())

    assert core.state.read_ids == {1}
    assert "Failed to report topic 1 as read" in caplog.text


def test_unmark_read_persists(core: ReconciliationCore, store: InMemoryPersistentStore) -> None:
    async def scenario() -> None:
        await core.mark_read(4)
        await core.mark_read(5)

    asyncio.run(scenario())
    core.unmark_read(4)

    assert core.state.read_ids == {5}
    assert store.get("readTopicIds") == [5]


def test_poll_never_shrinks_read_ids(core: ReconciliationCore, gateway: FakeGateway) -> None:
    async def scenario() -> None:
        await core.mark_read(1)
        for collection in (
            make_collection(make_topic(1)),
            make_collection(),
            make_collection(make_topic(2)),
        ):
            gateway.collection = collection
            await core.poll()
            assert 1 in core.state.read_ids

    asyncio.run(scenario())


def test_persistence_failure_keeps_in_memory_state(
    gateway: FakeGateway, caplog: pytest.LogCaptureFixture
) -> None:
    store = FailingStore()
    core = ReconciliationCore(gateway=gateway, store=store)

    with caplog.at_level(logging.WARNING):
        asyncio.run(core.mark_read(3))

    assert core.state.read_ids == {3}
    assert store.attempted_puts == ["readTopicIds"]
    assert "continuing in memory" in caplog.text


def test_toggle_bookmark_confirms(
    core: ReconciliationCore,
    gateway: FakeGateway,
    store: InMemoryPersistentStore,
) -> None:
    result = asyncio.run(core.toggle_bookmark(8))

    assert result.bookmarked
    assert result.error is None
    assert not result.coalesced
    assert gateway.mutations == [(8, BookmarkIntent.ADD)]
    assert store.get("bookmarkIds") == [8]


def test_failed_add_rolls_back_bookmark(
    core: ReconciliationCore,
    gateway: FakeGateway,
    store: InMemoryPersistentStore,
) -> None:
    gateway.mutation_errors = [FetchError("HTTP 500", status_code=500)]

    result = asyncio.run(core.toggle_bookmark(8))

    assert not result.bookmarked
    assert isinstance(result.error, ConflictError)
    assert result.error.intent is BookmarkIntent.ADD
    assert 8 not in core.state.bookmark_ids
    assert store.get("bookmarkIds") == []


def test_failed_remove_restores_bookmark(
    core: ReconciliationCore, gateway: FakeGateway
) -> None:
    gateway.bookmarks = frozenset({8})
    gateway.mutation_errors = [FetchError("offline")]

    async def scenario() -> None:
        await core.load()
        result = await core.toggle_bookmark(8)
        assert result.bookmarked
        assert isinstance(result.error, ConflictError)

    asyncio.run(scenario())

    assert core.state.bookmark_ids == {8}


def test_toggles_during_flight_are_coalesced(
    core: ReconciliationCore, gateway: FakeGateway
) -> None:
    async def scenario() -> None:
        gateway.mutation_gate = asyncio.Event()
        first = asyncio.create_task(core.toggle_bookmark(8))
        await asyncio.sleep(0)

        second = await core.toggle_bookmark(8)
        third = await core.toggle_bookmark(8)
        assert second.coalesced
        assert third.coalesced
        assert core.state.bookmark_ids == {8}
        assert core.pending_bookmark_ids == {8}

        gateway.mutation_gate.set()
        result = await first
        assert result.error is None

    asyncio.run(scenario())

    assert gateway.mutations == [(8, BookmarkIntent.ADD)]
    assert core.state.bookmark_ids == {8}
    assert core.pending_bookmark_ids == frozenset()


def test_coalesced_intent_is_sent_after_acknowledgement(
    core: ReconciliationCore, gateway: FakeGateway
) -> None:
    async def scenario() -> None:
        gateway.mutation_gate = asyncio.Event()
        first = asyncio.create_task(core.toggle_bookmark(8))
        await asyncio.sleep(0)
        await core.toggle_bookmark(8)
        gateway.mutation_gate.set()
        await first

    asyncio.run(scenario())

    assert gateway.mutations == [(8, BookmarkIntent.ADD), (8, BookmarkIntent.REMOVE)]
    assert core.state.bookmark_ids == frozenset()


def test_failure_drops_queued_intent_and_rolls_back(
    core: ReconciliationCore, gateway: FakeGateway
) -> None:
    gateway.mutation_errors = [FetchError("HTTP 503", status_code=503)]

    async def scenario() -> None:
        gateway.mutation_gate = asyncio.Event()
        first = asyncio.create_task(core.toggle_bookmark(8))
        await asyncio.sleep(0)
        await core.toggle_bookmark(8)
        await core.toggle_bookmark(8)
        gateway.mutation_gate.set()
        result = await first
        assert isinstance(result.error, ConflictError)

    asyncio.run(scenario())

    assert gateway.mutations == [(8, BookmarkIntent.ADD)]
    assert core.state.bookmark_ids == frozenset()


def test_snapshot_during_pending_mutation_keeps_local_intent(
    core: ReconciliationCore, gateway: FakeGateway
) -> None:
    async def scenario() -> None:
        gateway.mutation_gate = asyncio.Event()
        pending = asyncio.create_task(core.toggle_bookmark(8))
        await asyncio.sleep(0)

        gateway.bookmarks = frozenset({1})
        await core.sync_bookmarks()
        assert core.state.bookmark_ids == {1, 8}

        gateway.mutation_gate.set()
        await pending

    asyncio.run(scenario())

    assert core.state.bookmark_ids == {1, 8}


def test_stale_snapshot_does_not_undo_acknowledged_toggle(
    core: ReconciliationCore, gateway: FakeGateway, store: InMemoryPersistentStore
) -> None:
    async def scenario() -> None:
        gateway.bookmark_gate = asyncio.Event()
        sync = asyncio.create_task(core.sync_bookmarks())
        await asyncio.sleep(0)

        result = await core.toggle_bookmark(8)
        assert result.error is None
        gateway.bookmark_gate.set()
        assert await sync

    asyncio.run(scenario())

    assert core.state.bookmark_ids == {8}
    assert store.get("bookmarkIds") == [8]

    gateway.bookmark_gate = None
    gateway.bookmarks = frozenset({8, 2})
    assert asyncio.run(core.sync_bookmarks())
    assert core.state.bookmark_ids == {2, 8}


def test_update_config_validates_and_persists(
    core: ReconciliationCore, store: InMemoryPersistentStore
) -> None:
    core.update_config(block_categories=("gossip",), polling_interval_seconds=0)

    assert store.get("config") == core.state.config.to_document()
    with pytest.raises(ValueError, match="fade"):
        core.update_config(read_status_action="glow")
    assert core.state.config.polling_interval_seconds == 0

    core.reset_config()
    assert core.state.config.polling_interval_seconds == 30
    assert store.get("config") == core.state.config.to_document()


def test_set_auto_poll_persists_settings(
    core: ReconciliationCore, store: InMemoryPersistentStore
) -> None:
    core.set_auto_poll(False)

    assert not core.state.auto_poll_enabled
    stored = store.get("userSettings")
    assert isinstance(stored, dict)
    assert stored["autoRefreshEnabled"] is False


def test_is_new_uses_clock(core: ReconciliationCore, clock: FakeClock) -> None:
    topic = make_topic(1, created_at=NOW - timedelta(hours=3))

    assert core.is_new(topic)
    clock.advance(hours=2)
    assert not core.is_new(topic)
