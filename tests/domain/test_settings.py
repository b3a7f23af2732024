from __future__ import annotations

import pytest
from pydantic import ValidationError

from topicstream.domain.keywords import matches_any, parse_keywords
from topicstream.domain.model import (
    FeedConfig,
    FeedSelection,
    ReadStatusAction,
    SortMode,
    UserSettings,
)


def test_config_document_uses_camel_case_keys() -> None:
    document = FeedConfig(block_categories=("gossip",)).to_document()

    assert document["pollingIntervalSeconds"] == 30
    assert document["blockCategories"] == ["gossip"]
    assert document["readStatusAction"] == "fade"
    assert document["syncReadStatus"] is True
    assert document["showBadge"] is True


def test_config_accepts_legacy_polling_interval_key() -> None:
    config = FeedConfig.model_validate({"pollingInterval": 0, "unknownKey": 1})

    assert config.polling_interval_seconds == 0


def test_config_round_trips_through_document() -> None:
    config = FeedConfig(
        polling_interval_seconds=60,
        keyword_blacklist="spam",
        read_status_action=ReadStatusAction.HIDE,
    )

    assert FeedConfig.model_validate(config.to_document()) == config


def test_with_changes_validates() -> None:
    config = FeedConfig().with_changes(quality_filter=True, block_categories="gossip, news")

    assert config.quality_filter
    assert config.block_categories == ("gossip", "news")
    with pytest.raises(ValidationError):
        FeedConfig().with_changes(read_status_action="blink")
    with pytest.raises(ValidationError):
        FeedConfig().with_changes(polling_interval_seconds=-1)
    with pytest.raises(ValueError, match="Unknown option"):
        FeedConfig().with_changes(colour="red")


def test_user_settings_defaults() -> None:
    settings = UserSettings()

    assert settings.auto_refresh_enabled
    assert settings.category_filter is FeedSelection.ALL
    assert settings.sub_category_filter == 4
    assert settings.sort_filter is SortMode.LATEST
    assert settings.to_document() == {
        "autoRefreshEnabled": True,
        "categoryFilter": "all",
        "subCategoryFilter": 4,
        "sortFilter": "latest",
    }


def test_field_name_for_resolves_names_and_aliases() -> None:
    assert FeedConfig.field_name_for("notifyKeywords") == "notify_keywords"
    assert FeedConfig.field_name_for("notify_keywords") == "notify_keywords"
    assert UserSettings.field_name_for("sortFilter") == "sort_filter"
    assert FeedConfig.field_name_for("sortFilter") is None


def test_parse_keywords() -> None:
    assert parse_keywords(" AI , ,GPT,") == ("ai", "gpt")
    assert parse_keywords("") == ()
    assert matches_any("Some AI News", ("ai",))
    assert not matches_any("Cooking", ("ai",))
