"""Polling and notification defaults for the reconciliation core."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

DEFAULT_RECENCY_WINDOW = timedelta(hours=4)
DEFAULT_NOTIFICATION_COOLDOWN_MS = 5000
DEFAULT_IDLE_CHECK_SECONDS = 5.0


@dataclass(frozen=True, slots=True)
class SyncConfig:
    recency_window: timedelta = DEFAULT_RECENCY_WINDOW
    notification_cooldown_ms: int = DEFAULT_NOTIFICATION_COOLDOWN_MS
    # How often the polling loop re-checks while auto-poll is off or the interval is 0.
    idle_check_seconds: float = DEFAULT_IDLE_CHECK_SECONDS


def get_sync_config() -> SyncConfig:
    return SyncConfig()
