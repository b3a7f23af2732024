from __future__ import annotations

from datetime import timedelta

from topicstream.domain.model import CanonicalState, Topic
from topicstream.domain.notifications import NotificationState, decide
from topicstream.domain.time_windows import TimeWindow
from tests.helpers.forum import NOW, make_topic

RECENCY = TimeWindow(timedelta(hours=4))


def _state(*topics: Topic, read_ids: frozenset[int] = frozenset()) -> CanonicalState:
    return CanonicalState(topics={topic.id: topic for topic in topics}, read_ids=read_ids)


def test_new_matching_topic_fires_and_sets_last_fired_at() -> None:
    item = make_topic(1, "AI news", created_at=NOW - timedelta(hours=1))
    state = _state(item)

    decision = decide({1}, state, "ai", NotificationState(), now=NOW, recency=RECENCY)

    assert decision.topics == (item,)
    assert decision.state.last_fired_at == NOW


def test_empty_keyword_spec_notifies_nothing() -> None:
    state = _state(make_topic(1, "AI news"))

    for spec in ("", " , ,", None):
        decision = decide({1}, state, spec, NotificationState(), now=NOW, recency=RECENCY)
        assert decision.topics == ()
        assert decision.state.last_fired_at is None


def test_only_new_unread_recent_topics_are_candidates() -> None:
    state = _state(
        make_topic(1, "AI one"),
        make_topic(2, "AI two"),
        make_topic(3, "AI three", created_at=NOW - timedelta(hours=4)),
        make_topic(4, "AI four"),
        make_topic(5, "Cooking"),
        read_ids=frozenset({2}),
    )

    decision = decide(
        {1, 2, 3, 5}, state, "ai", NotificationState(), now=NOW, recency=RECENCY
    )

    assert [topic.id for topic in decision.topics] == [1]


def test_keywords_match_case_insensitively_with_any_keyword() -> None:
    state = _state(make_topic(1, "New GPT release"), make_topic(2, "Rust 2.0"))

    decision = decide(
        {1, 2}, state, "claude, gpt ,RUST", NotificationState(), now=NOW, recency=RECENCY
    )

    assert [topic.id for topic in decision.topics] == [1, 2]


def test_cooldown_allows_one_firing_across_two_calls_one_second_apart() -> None:
    state = _state(make_topic(1, "AI one"), make_topic(2, "AI two"))
    notification_state = NotificationState(cooldown_ms=5000)

    first = decide({1}, state, "ai", notification_state, now=NOW, recency=RECENCY)
    second = decide(
        {2},
        state,
        "ai",
        first.state,
        now=NOW + timedelta(milliseconds=1000),
        recency=RECENCY,
    )

    assert len(first.topics) + len(second.topics) == 1
    assert second.state.last_fired_at == NOW


def test_firing_resumes_after_cooldown_and_reset() -> None:
    state = _state(make_topic(1, "AI one"))
    fired = decide({1}, state, "ai", NotificationState(), now=NOW, recency=RECENCY).state

    later = decide(
        {1}, state, "ai", fired, now=NOW + timedelta(seconds=5), recency=RECENCY
    )
    after_reset = decide(
        {1}, state, "ai", fired.reset(), now=NOW + timedelta(seconds=1), recency=RECENCY
    )

    assert later.fired
    assert after_reset.fired


def test_no_match_keeps_state_unchanged() -> None:
    notification_state = NotificationState()
    state = _state(make_topic(1, "Cooking"))

    decision = decide({1}, state, "ai", notification_state, now=NOW, recency=RECENCY)

    assert decision.state is notification_state
    assert not decision.fired
