from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import pytest

from topicstream.adapters.memory import InMemoryPersistentStore
from topicstream.domain.errors import FetchError
from topicstream.domain.model import FeedSelection
from topicstream.domain.reconciliation import ReconciliationCore
from topicstream.ui import cli as cli_module
from tests.helpers.forum import FakeClock, FakeGateway, FakeSink, make_collection, make_topic

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@pytest.fixture
def session(monkeypatch: pytest.MonkeyPatch) -> tuple[FakeGateway, InMemoryPersistentStore]:
    gateway = FakeGateway(
        collection=make_collection(
            make_topic(
                1,
                "Rust tips",
                category_id=4,
                reply_count=12,
                view_count=300,
                highest_seen_sequence=13,
            ),
            make_topic(2, "Weekend gossip", category_id=11, reply_count=3),
        )
    )
    store = InMemoryPersistentStore()

    @asynccontextmanager
    async def fake_open_session() -> AsyncIterator[ReconciliationCore]:
        core = ReconciliationCore(gateway=gateway, store=store, sink=FakeSink(), clock=FakeClock())
        await core.load()
        try:
            yield core
        finally:
            await core.aclose()

    monkeypatch.setattr(cli_module, "open_session", fake_open_session)
    return gateway, store


def test_poll_prints_view(
    session: tuple[FakeGateway, InMemoryPersistentStore],
    capsys: pytest.CaptureFixture[str],
) -> None:
    _ = session
    cli_module.main(["poll", "--sort", "replies"])

    lines = capsys.readouterr().out.splitlines()
    assert "Rust tips" in lines[0]
    assert "[develop]" in lines[0]
    assert "Weekend gossip" in lines[1]
    assert lines[-1] == "-- 2 topics, 2 unread"


def test_poll_with_category_updates_settings(
    session: tuple[FakeGateway, InMemoryPersistentStore],
) -> None:
    gateway, store = session

    cli_module.main(["poll", "--category", "14"])

    stored = store.get("userSettings")
    assert isinstance(stored, dict)
    assert stored["categoryFilter"] == FeedSelection.CATEGORIES.value
    assert stored["subCategoryFilter"] == 14
    assert gateway.queries[-1].category_id == 14


def test_failed_poll_exits_with_error(
    session: tuple[FakeGateway, InMemoryPersistentStore],
) -> None:
    gateway, _store = session
    gateway.collection = FetchError("HTTP 502", status_code=502)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["poll"])

    assert excinfo.value.code == 1


def test_read_and_unread_persist(session: tuple[FakeGateway, InMemoryPersistentStore]) -> None:
    _gateway, store = session

    cli_module.main(["read", "5"])
    cli_module.main(["read", "6"])
    cli_module.main(["unread", "5"])

    assert store.get("readTopicIds") == [6]


def test_bookmark_toggle_reports_state(
    session: tuple[FakeGateway, InMemoryPersistentStore],
    capsys: pytest.CaptureFixture[str],
) -> None:
    gateway, _store = session

    cli_module.main(["bookmark", "9"])

    assert capsys.readouterr().out.strip() == "Topic 9 is bookmarked"
    gateway.mutation_errors = [FetchError("HTTP 500", status_code=500)]
    gateway.bookmarks = frozenset({9})
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["bookmark", "9"])
    assert excinfo.value.code == 1


def test_config_set_and_show(
    session: tuple[FakeGateway, InMemoryPersistentStore],
    capsys: pytest.CaptureFixture[str],
) -> None:
    _gateway, store = session

    cli_module.main(
        ["config", "set", "notifyKeywords=AI,GPT", "qualityFilter=true", "sortFilter=views"]
    )

    document = json.loads(capsys.readouterr().out)
    assert document["config"]["notifyKeywords"] == "AI,GPT"
    assert document["config"]["qualityFilter"] is True
    assert document["userSettings"]["sortFilter"] == "views"
    assert store.get("config") == document["config"]

    cli_module.main(["config", "reset"])
    assert json.loads(capsys.readouterr().out)["config"]["qualityFilter"] is False


@pytest.mark.parametrize(
    "assignment",
    ["colour=red", "qualityFilter", "readStatusAction=blink", "pollingInterval=-5"],
)
def test_invalid_config_exits_with_code_two(
    session: tuple[FakeGateway, InMemoryPersistentStore],
    assignment: str,
) -> None:
    _ = session
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["config", "set", assignment])

    assert excinfo.value.code == 2


def test_parse_assignments_splits_config_and_settings() -> None:
    config_changes, settings_changes = cli_module.parse_assignments(
        ["blockCategories=gossip,news", "pollingInterval=0", "categoryFilter=top"]
    )

    assert config_changes == {"block_categories": "gossip,news", "polling_interval_seconds": 0}
    assert settings_changes == {"category_filter": "top"}


def test_read_reports_last_post_seen_in_fresh_poll(
    session: tuple[FakeGateway, InMemoryPersistentStore],
) -> None:
    gateway, _store = session

    cli_module.main(["read", "1"])
    cli_module.main(["read", "2", "--post-number", "4"])

    assert gateway.reports == [(1, 13), (2, 4)]
    assert len(gateway.queries) == 1


def test_read_stays_local_when_sync_is_off(
    session: tuple[FakeGateway, InMemoryPersistentStore],
) -> None:
    gateway, store = session
    store.put("config", {"syncReadStatus": False})

    cli_module.main(["read", "1"])

    assert gateway.reports == []
    assert gateway.queries == []
    assert store.get("readTopicIds") == [1]


def _core_with_rich_topic(**config: object) -> ReconciliationCore:
    topic = make_topic(
        3,
        "Local models",
        excerpt="Running   a 7B model\non a laptop",
        last_poster_username="carol",
    )
    core = ReconciliationCore(
        gateway=FakeGateway(collection=make_collection(topic)),
        store=InMemoryPersistentStore(),
        clock=FakeClock(),
    )
    core.update_config(**config)
    asyncio.run(core.poll())
    return core


def test_format_topic_shows_poster_and_excerpt() -> None:
    core = _core_with_rich_topic()

    first, second = cli_module.format_topic(core, core.view()[0]).splitlines()

    assert first.endswith("by carol")
    assert second.strip() == "Running a 7B model on a laptop"


def test_format_topic_in_low_data_mode_is_one_line() -> None:
    core = _core_with_rich_topic(low_data_mode=True)

    line = cli_module.format_topic(core, core.view()[0])

    assert "\n" not in line
    assert "carol" not in line
    assert "Running" not in line
