"""Clock abstraction and recency windows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


def _ensure_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValueError("Time window values must include timezone information")
    return value.astimezone(UTC)


@dataclass(frozen=True)
class TimeWindow:
    """A trailing window of ``lookback`` ending at the clock's ``now``."""

    lookback: timedelta

    def __post_init__(self) -> None:
        if self.lookback < timedelta(0):
            raise ValueError("Lookback duration must be non-negative")

    def start(self, *, now: datetime) -> datetime:
        return _ensure_aware(now) - self.lookback

    def contains(self, moment: datetime, *, now: datetime) -> bool:
        """Return whether ``moment`` lies strictly after the window start.

        There is no upper bound: timestamps slightly ahead of ``now`` (clock skew
        between client and forum) still count as recent.
        """

        return _ensure_aware(moment) > self.start(now=now)


__all__ = ["Clock", "TimeWindow", "utcnow"]
