"""Application wiring: build a reconciliation core from the configured adapters."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from topicstream.adapters.discourse import DiscourseGateway
from topicstream.adapters.notifications import LoggingNotificationSink
from topicstream.adapters.sqlalchemy import SqlAlchemyPersistentStore, is_started, startup
from topicstream.config import SyncConfig, get_forum_config, get_sync_config
from topicstream.domain.reconciliation import ReconciliationCore
from topicstream.domain.time_windows import utcnow

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from topicstream.domain.ports import NotificationSink, PersistentStore, RemoteGateway
    from topicstream.domain.reconciliation import PollResult
    from topicstream.domain.time_windows import Clock

    Sleep = Callable[[float], Awaitable[object]]
    PollCallback = Callable[[PollResult], None]

log = getLogger(__name__)


def build_core(
    *,
    gateway: RemoteGateway,
    store: PersistentStore,
    sink: NotificationSink | None = None,
    sync: SyncConfig | None = None,
    clock: Clock = utcnow,
) -> ReconciliationCore:
    sync_config = sync or get_sync_config()
    return ReconciliationCore(
        gateway=gateway,
        store=store,
        sink=sink,
        recency_window=sync_config.recency_window,
        cooldown_ms=sync_config.notification_cooldown_ms,
        clock=clock,
    )


def default_store(*, database_uri: str | None = None) -> SqlAlchemyPersistentStore:
    """SQLAlchemy-backed store, initialising the database on first use."""

    if not is_started():
        startup(database_uri=database_uri)
    return SqlAlchemyPersistentStore()


@asynccontextmanager
async def open_session(
    *,
    gateway: RemoteGateway | None = None,
    store: PersistentStore | None = None,
    sink: NotificationSink | None = None,
    sync: SyncConfig | None = None,
) -> AsyncIterator[ReconciliationCore]:
    """Yield a loaded core; close the gateway it created and wait for pending reports."""

    owned_gateway: DiscourseGateway | None = None
    if gateway is None:
        gateway = owned_gateway = DiscourseGateway(config=get_forum_config())
    core = build_core(
        gateway=gateway,
        store=store or default_store(),
        sink=sink or LoggingNotificationSink(),
        sync=sync,
    )
    try:
        await core.load()
        yield core
    finally:
        await core.aclose()
        if owned_gateway is not None:
            await owned_gateway.aclose()


async def run_polling(
    core: ReconciliationCore,
    *,
    stop: asyncio.Event,
    sleep: Sleep = asyncio.sleep,
    idle_seconds: float | None = None,
    on_result: PollCallback | None = None,
) -> int:
    """Poll until ``stop`` is set and return how many polls ran.

    The interval is re-read from the core's config before every cycle, so
    changes take effect without a restart. While auto-poll is off or the
    interval is 0 the loop only idles.
    """

    idle = idle_seconds if idle_seconds is not None else get_sync_config().idle_check_seconds
    polls = 0
    while not stop.is_set():
        interval = core.state.config.polling_interval_seconds
        if not core.state.auto_poll_enabled or interval <= 0:
            await sleep(idle)
            continue

        result = await core.poll()
        polls += 1
        if result.ok:
            log.info(
                "Poll %s: %s topics shown, %s new, %s notified",
                polls,
                len(result.view),
                len(result.delta_ids),
                len(result.notified),
            )
        else:
            log.warning("Poll %s failed: %s", polls, result.error)
        if on_result is not None:
            on_result(result)
        if stop.is_set():
            break
        await sleep(interval)
    return polls
