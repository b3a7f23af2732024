"""SQLAlchemy adapter package for topicstream."""

from __future__ import annotations

from .mappings import StoredValue, mapper_registry, start_mappers, stored_value_table
from .repositories import SqlAlchemyStoredValueRepository
from .store import SqlAlchemyPersistentStore
from .unit_of_work import SqlAlchemyUnitOfWork, StartupError, is_started, shutdown, startup

__all__ = [
    "SqlAlchemyPersistentStore",
    "SqlAlchemyStoredValueRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "StoredValue",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
    "stored_value_table",
]
