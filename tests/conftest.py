from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from topicstream.adapters.memory import InMemoryPersistentStore
from topicstream.adapters.sqlalchemy import SqlAlchemyUnitOfWork, shutdown, startup
from topicstream.domain.reconciliation import ReconciliationCore
from tests.helpers.forum import FakeClock, FakeGateway, FakeSink

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def store() -> InMemoryPersistentStore:
    return InMemoryPersistentStore()


@pytest.fixture
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def core(
    gateway: FakeGateway,
    store: InMemoryPersistentStore,
    sink: FakeSink,
    clock: FakeClock,
) -> ReconciliationCore:
    return ReconciliationCore(gateway=gateway, store=store, sink=sink, clock=clock)
