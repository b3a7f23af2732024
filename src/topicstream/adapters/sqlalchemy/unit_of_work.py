"""Engine lifecycle for the key-value store and the unit of work around it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from topicstream.adapters.sqlalchemy.mappings import start_mappers
from topicstream.adapters.sqlalchemy.migrations import upgrade_head
from topicstream.adapters.sqlalchemy.repositories import SqlAlchemyStoredValueRepository
from topicstream.config.storage import get_database_config

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the store is used before :func:`startup` or started twice."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None

    def bind(self, engine: Engine | None) -> None:
        self.engine = engine
        self.sessions = (
            None if engine is None else sessionmaker(bind=engine, expire_on_commit=False)
        )

    def open_session(self) -> Session:
        if self.sessions is None:
            raise StartupError(
                "Key-value store not initialised; call startup() before opening a unit of work."
            )
        return self.sessions()


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Create (or adopt) the engine and bring the ``stored_value`` schema up to date."""

    if _STATE.engine is not None and not force:
        raise StartupError("Key-value store already initialised. Pass force=True to rebind.")

    if engine is None:
        engine = create_engine(database_uri or get_database_config().uri, future=True)
    start_mappers()
    upgrade_head(engine=engine)
    _STATE.bind(engine)
    log.debug("Key-value store ready on %s", engine.url.render_as_string(hide_password=True))


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.bind(None)


class SqlAlchemyUnitOfWork:
    """One session, exposing the stored-value repository while it is open.

    Nothing is written unless :meth:`commit` is called; leaving the block on an
    exception rolls back.
    """

    def __init__(self) -> None:
        self._session: Session | None = None
        self._stored_values: SqlAlchemyStoredValueRepository | None = None

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        self._session = _STATE.open_session()
        self._stored_values = SqlAlchemyStoredValueRepository(self._session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        if exc_type is not None:
            session.rollback()
        session.close()
        self._session = None
        self._stored_values = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def stored_values(self) -> SqlAlchemyStoredValueRepository:
        if self._stored_values is None:
            raise StartupError("Unit of work is not open")
        return self._stored_values
