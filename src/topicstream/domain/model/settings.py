"""User-tunable options, persisted as camelCase documents."""

from __future__ import annotations

from typing import Self

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .enums import FeedSelection, ReadStatusAction, SortMode


class _StoredOptions(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    def with_changes(self, **changes: object) -> Self:
        """Return a validated copy with ``changes`` applied by field name."""

        unknown = sorted(set(changes) - set(type(self).model_fields))
        if unknown:
            raise ValueError(f"Unknown option(s): {', '.join(unknown)}")
        return type(self).model_validate({**self.model_dump(), **changes})

    def to_document(self) -> dict[str, object]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def field_name_for(cls, key: str) -> str | None:
        """Resolve a field name or its persisted camelCase key to the field name."""

        for name, info in cls.model_fields.items():
            if key in {name, info.alias}:
                return name
        return None


class FeedConfig(_StoredOptions):
    """Filtering, polling and notification options (the ``config`` key)."""

    polling_interval_seconds: int = Field(
        default=30,
        ge=0,
        alias="pollingIntervalSeconds",
        validation_alias=AliasChoices(
            "pollingIntervalSeconds", "pollingInterval", "polling_interval_seconds"
        ),
    )
    low_data_mode: bool = False
    block_categories: tuple[str, ...] = ()
    keyword_blacklist: str = ""
    quality_filter: bool = False
    read_status_action: ReadStatusAction = ReadStatusAction.FADE
    notify_keywords: str = ""
    sync_read_status: bool = True
    show_badge: bool = True

    @field_validator("block_categories", mode="before")
    @classmethod
    def _split_category_list(cls, value: object) -> object:
        if isinstance(value, str):
            return tuple(slug for part in value.split(",") if (slug := part.strip()))
        return value


class UserSettings(_StoredOptions):
    """Filter-bar state (the ``userSettings`` key)."""

    auto_refresh_enabled: bool = True
    category_filter: FeedSelection = FeedSelection.ALL
    sub_category_filter: int = 4
    sort_filter: SortMode = SortMode.LATEST


DEFAULT_CONFIG = FeedConfig()
DEFAULT_USER_SETTINGS = UserSettings()
