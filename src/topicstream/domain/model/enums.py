"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class FeedKind(StrEnum):
    LATEST = "latest"
    TOP = "top"
    CATEGORY = "category"


class FeedSelection(StrEnum):
    """Which feed the user picked in the filter bar."""

    ALL = "all"
    TOP = "top"
    CATEGORIES = "categories"
    BOOKMARKS = "bookmarks"


class SortMode(StrEnum):
    LATEST = "latest"
    CREATED = "created"
    VIEWS = "views"
    REPLIES = "replies"


class ReadStatusAction(StrEnum):
    FADE = "fade"
    HIDE = "hide"


class BookmarkIntent(StrEnum):
    ADD = "add"
    REMOVE = "remove"


class MergeMode(StrEnum):
    REPLACE = "replace"
    APPEND = "append"
