"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import FeedQuery, FetchedCollection, RemoteGateway
from .notifying import NotificationSink
from .persistence import (
    BOOKMARK_IDS_KEY,
    CONFIG_KEY,
    READ_TOPIC_IDS_KEY,
    USER_SETTINGS_KEY,
    PersistentStore,
)

__all__ = [
    "BOOKMARK_IDS_KEY",
    "CONFIG_KEY",
    "READ_TOPIC_IDS_KEY",
    "USER_SETTINGS_KEY",
    "FeedQuery",
    "FetchedCollection",
    "NotificationSink",
    "PersistentStore",
    "RemoteGateway",
]
