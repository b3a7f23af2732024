"""The canonical in-memory state owned by the reconciliation core."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, TypeVar

from .settings import DEFAULT_CONFIG, DEFAULT_USER_SETTINGS, FeedConfig, UserSettings

if TYPE_CHECKING:
    from .enums import SortMode
    from .topics import Author, Topic

K = TypeVar("K")
V = TypeVar("V")


def _frozen_mapping(values: Mapping[K, V] | None = None) -> Mapping[K, V]:
    return MappingProxyType(dict(values or {}))


@dataclass(frozen=True, slots=True, kw_only=True)
class CanonicalState:
    """Immutable snapshot of everything the client knows.

    ``read_ids`` and ``bookmark_ids`` are deliberately independent of ``topics``:
    an id may be read or bookmarked without the topic being in the current feed.
    """

    topics: Mapping[int, Topic] = field(default_factory=_frozen_mapping)
    authors: Mapping[int, Author] = field(default_factory=_frozen_mapping)
    read_ids: frozenset[int] = frozenset()
    bookmark_ids: frozenset[int] = frozenset()
    config: FeedConfig = DEFAULT_CONFIG
    settings: UserSettings = DEFAULT_USER_SETTINGS

    @property
    def sort_mode(self) -> SortMode:
        return self.settings.sort_filter

    @property
    def auto_poll_enabled(self) -> bool:
        return self.settings.auto_refresh_enabled

    def with_content(
        self,
        topics: Mapping[int, Topic],
        authors: Mapping[int, Author],
    ) -> CanonicalState:
        return replace(self, topics=_frozen_mapping(topics), authors=_frozen_mapping(authors))

    def with_read_ids(self, read_ids: frozenset[int]) -> CanonicalState:
        return replace(self, read_ids=read_ids)

    def with_bookmark_ids(self, bookmark_ids: frozenset[int]) -> CanonicalState:
        return replace(self, bookmark_ids=bookmark_ids)

    def with_config(self, config: FeedConfig) -> CanonicalState:
        return replace(self, config=config)

    def with_settings(self, settings: UserSettings) -> CanonicalState:
        return replace(self, settings=settings)
