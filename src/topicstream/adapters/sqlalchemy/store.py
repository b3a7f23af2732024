"""``PersistentStore`` backed by the ``stored_value`` table."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from topicstream.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork
from topicstream.domain.errors import PersistenceError
from topicstream.domain.ports.persistence import PersistentStore
from topicstream.domain.time_windows import utcnow

if TYPE_CHECKING:
    from topicstream.domain.time_windows import Clock

UnitOfWorkFactory = Callable[[], SqlAlchemyUnitOfWork]

log = logging.getLogger(__name__)


class SqlAlchemyPersistentStore:
    """Each ``get`` and ``put`` runs in its own unit of work; writes commit immediately."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory = SqlAlchemyUnitOfWork,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._clock = clock

    def get(self, key: str) -> object | None:
        try:
            with self._unit_of_work_factory() as uow:
                row = uow.stored_values.get(key)
                return None if row is None else row.value
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to read {key!r}") from exc

    def put(self, key: str, value: object) -> None:
        try:
            with self._unit_of_work_factory() as uow:
                uow.stored_values.upsert(key, value, updated_at=self._clock())
                uow.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to write {key!r}") from exc
        log.debug("Stored %r", key)

    def keys(self) -> list[str]:
        try:
            with self._unit_of_work_factory() as uow:
                return uow.stored_values.keys()
        except SQLAlchemyError as exc:
            raise PersistenceError("Failed to list stored keys") from exc


if TYPE_CHECKING:
    _store_check: PersistentStore = SqlAlchemyPersistentStore()
