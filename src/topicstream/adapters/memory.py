"""In-process ``PersistentStore`` for tests and throwaway sessions."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from topicstream.domain.ports.persistence import PersistentStore


class InMemoryPersistentStore:
    """Keeps deep copies so callers cannot mutate stored documents in place."""

    def __init__(self, initial: dict[str, object] | None = None) -> None:
        self._values: dict[str, object] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str) -> object | None:
        value = self._values.get(key)
        return copy.deepcopy(value)

    def put(self, key: str, value: object) -> None:
        self._values[key] = copy.deepcopy(value)

    def keys(self) -> list[str]:
        return sorted(self._values)


if TYPE_CHECKING:
    _store_check: PersistentStore = InMemoryPersistentStore()
