"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from topicstream.adapters.sqlalchemy.mappings import StoredValue, stored_value_table

if TYPE_CHECKING:
    from datetime import datetime

    from sqlalchemy.orm import Session


class SqlAlchemyStoredValueRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, key: str) -> StoredValue | None:
        return self.session.get(StoredValue, key)

    def upsert(self, key: str, value: object, *, updated_at: datetime) -> StoredValue:
        existing = self.get(key)
        if existing is None:
            existing = StoredValue(key=key, value=value, updated_at=updated_at)
            self.session.add(existing)
        else:
            existing.value = value
            existing.updated_at = updated_at
        return existing

    def keys(self) -> list[str]:
        stmt = select(stored_value_table.c.key).order_by(stored_value_table.c.key)
        return list(self.session.execute(stmt).scalars())
