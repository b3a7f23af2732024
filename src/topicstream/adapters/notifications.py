"""Notification sinks that do not need a desktop session."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from topicstream.domain.ports.notifying import NotificationSink

log = logging.getLogger(__name__)


class LoggingNotificationSink:
    """Surfaces notifications as ``INFO`` log records."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._log = logger or log

    async def notify(self, text: str) -> None:
        self._log.info("New topic: %s", text)


if TYPE_CHECKING:
    _sink_check: NotificationSink = LoggingNotificationSink()
