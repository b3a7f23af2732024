"""Pydantic models for the Discourse JSON endpoints the gateway reads."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DiscourseBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class PosterPayload(DiscourseBaseModel):
    user_id: int | None = None
    extras: str | None = None
    description: str | None = None

    @property
    def is_latest(self) -> bool:
        return "latest" in (self.extras or "").split()


class TopicPayload(DiscourseBaseModel):
    id: int
    title: str
    slug: str | None = None
    created_at: datetime
    last_posted_at: datetime | None = None
    category_id: int | None = None
    tags: list[str] = Field(default_factory=list)
    views: int = 0
    posts_count: int = 0
    highest_post_number: int = 0
    last_read_post_number: int | None = None
    last_poster_username: str | None = None
    excerpt: str | None = None
    posters: list[PosterPayload] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _fall_back_to_fancy_title(cls, value: object) -> object:
        # ``fancy_title`` carries HTML entities; use it only when ``title`` is absent.
        if isinstance(value, Mapping):
            data = dict(cast(Mapping[str, object], value))
            if data.get("title") is None and data.get("fancy_title") is not None:
                data["title"] = data["fancy_title"]
            return data
        return value

    @field_validator("tags", mode="before")
    @classmethod
    def _tag_names(cls, value: object) -> object:
        # Newer Discourse versions send tags as objects with a ``name`` key.
        if value is None:
            return []
        if isinstance(value, list):
            names: list[object] = []
            for tag in cast(list[object], value):
                if isinstance(tag, Mapping):
                    tag = cast(Mapping[str, object], tag).get("name")
                if tag is not None:
                    names.append(tag)
            return names
        return value

    @field_validator("views", "posts_count", "highest_post_number", mode="before")
    @classmethod
    def _null_counter(cls, value: object) -> object:
        return 0 if value is None else value


class UserPayload(DiscourseBaseModel):
    id: int
    username: str | None = None
    trust_level: int = 0
    admin: bool = False

    @field_validator("trust_level", mode="before")
    @classmethod
    def _clamp_trust_level(cls, value: object) -> object:
        if value is None:
            return 0
        if isinstance(value, int):
            return min(max(value, 0), 4)
        return value

    @field_validator("admin", mode="before")
    @classmethod
    def _null_admin(cls, value: object) -> object:
        return False if value is None else value


class TopicList(DiscourseBaseModel):
    topics: list[TopicPayload] = Field(default_factory=list)


class TopicListResponse(DiscourseBaseModel):
    """``/latest.json``, ``/top.json`` and ``/c/...json``.

    Besides the regular ``{"topic_list": {"topics": [...]}, "users": [...]}``
    shape, a top-level ``topics`` key and a bare list of topics are accepted.
    """

    topic_list: TopicList = Field(default_factory=TopicList)
    users: list[UserPayload] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalize_shape(cls, value: object) -> object:
        if isinstance(value, list):
            return {"topic_list": {"topics": value}}
        if isinstance(value, Mapping):
            data = dict(cast(Mapping[str, object], value))
            if "topic_list" not in data and "topics" in data:
                data["topic_list"] = {"topics": data.pop("topics")}
            if data.get("users") is None:
                data["users"] = []
            return data
        return value

    @property
    def topics(self) -> list[TopicPayload]:
        return self.topic_list.topics


class BookmarkedTopic(DiscourseBaseModel):
    id: int


class UserBookmarkPayload(DiscourseBaseModel):
    topic: BookmarkedTopic | None = None
    topic_id: int | None = None

    @property
    def resolved_topic_id(self) -> int | None:
        if self.topic is not None:
            return self.topic.id
        return self.topic_id


class UserBookmarksResponse(DiscourseBaseModel):
    user_bookmarks: list[UserBookmarkPayload] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _unwrap_bookmark_list(cls, value: object) -> object:
        # Some versions nest the list as ``{"bookmark_list": {"bookmarks": [...]}}``.
        if isinstance(value, Mapping):
            data = dict(cast(Mapping[str, object], value))
            nested = data.get("bookmark_list")
            if "user_bookmarks" not in data and isinstance(nested, Mapping):
                data["user_bookmarks"] = cast(Mapping[str, object], nested).get("bookmarks", [])
            if data.get("user_bookmarks") is None:
                data["user_bookmarks"] = []
            return data
        return value

    def topic_ids(self) -> frozenset[int]:
        return frozenset(
            topic_id
            for bookmark in self.user_bookmarks
            if (topic_id := bookmark.resolved_topic_id) is not None
        )
