"""Ports for persisting client state between sessions."""

from __future__ import annotations

from typing import Final, Protocol, runtime_checkable

CONFIG_KEY: Final[str] = "config"
USER_SETTINGS_KEY: Final[str] = "userSettings"
READ_TOPIC_IDS_KEY: Final[str] = "readTopicIds"
BOOKMARK_IDS_KEY: Final[str] = "bookmarkIds"


@runtime_checkable
class PersistentStore(Protocol):
    """Key/value store for JSON-compatible values.

    Implementations raise :class:`~topicstream.domain.errors.PersistenceError`
    when the backing storage fails.
    """

    def get(self, key: str) -> object | None: ...

    def put(self, key: str, value: object) -> None: ...


__all__ = [
    "BOOKMARK_IDS_KEY",
    "CONFIG_KEY",
    "READ_TOPIC_IDS_KEY",
    "USER_SETTINGS_KEY",
    "PersistentStore",
]
