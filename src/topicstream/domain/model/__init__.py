"""Public domain model surface."""

from __future__ import annotations

from topicstream.domain.model.categories import (
    DEFAULT_CATEGORIES,
    DEFAULT_CATEGORY_INDEX,
    Category,
    category_slug,
    index_categories,
)
from topicstream.domain.model.enums import (
    BookmarkIntent,
    FeedKind,
    FeedSelection,
    MergeMode,
    ReadStatusAction,
    SortMode,
)
from topicstream.domain.model.settings import (
    DEFAULT_CONFIG,
    DEFAULT_USER_SETTINGS,
    FeedConfig,
    UserSettings,
)
from topicstream.domain.model.state import CanonicalState
from topicstream.domain.model.topics import Author, Topic

__all__ = [
    "DEFAULT_CATEGORIES",
    "DEFAULT_CATEGORY_INDEX",
    "DEFAULT_CONFIG",
    "DEFAULT_USER_SETTINGS",
    "Author",
    "BookmarkIntent",
    "CanonicalState",
    "Category",
    "FeedConfig",
    "FeedKind",
    "FeedSelection",
    "MergeMode",
    "ReadStatusAction",
    "SortMode",
    "Topic",
    "UserSettings",
    "category_slug",
    "index_categories",
]
