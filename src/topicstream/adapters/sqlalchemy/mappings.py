"""SQLAlchemy mapping metadata for persisted client state."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import cache

from sqlalchemy import JSON, Column, DateTime, Dialect, String, Table, TypeDecorator, orm

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


@dataclass(eq=False)
class StoredValue:
    """One key of the persistent key/value store with its JSON document."""

    key: str
    value: object
    updated_at: datetime


mapper_registry = orm.registry()

stored_value_table = Table(
    "stored_value",
    mapper_registry.metadata,
    Column("key", String(64), primary_key=True),
    Column("value", JSON, nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Map the persistence classes onto their tables (idempotent)."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(StoredValue, stored_value_table)
    return mapper_registry
