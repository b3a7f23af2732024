"""Port for surfacing notifications to the user."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class NotificationSink(Protocol):
    async def notify(self, text: str) -> None: ...


__all__ = ["NotificationSink"]
