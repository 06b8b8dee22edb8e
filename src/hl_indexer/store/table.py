"""
Primary entity table.

Maps each natural key to its single live record and hands out surrogate ids.
Ids increase strictly per table and are never reused, not even after
eviction: only a full reset brings the counter back to 1.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from hl_indexer.types import RecordModel

K = TypeVar("K", bound=Hashable)
R = TypeVar("R", bound=RecordModel)


@dataclass(slots=True)
class EntityTable(Generic[K, R]):
    """Records of one entity type keyed by natural key, in insertion order."""

    key_fn: Callable[[R], K]
    """Extracts the natural key of a record."""

    next_id: int = 1
    """Id the next inserted record receives."""

    _rows: dict[K, R] = field(default_factory=dict, repr=False)

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, key: object) -> bool:
        return key in self._rows

    def __iter__(self) -> Iterator[R]:
        return iter(self._rows.values())

    def get(self, key: K) -> R | None:
        """Look up a record by natural key."""
        return self._rows.get(key)

    def insert(self, record: R) -> R:
        """Store a new record under a freshly assigned id."""
        stored = record.with_id(self.next_id)
        self.next_id += 1
        self._rows[self.key_fn(stored)] = stored
        return stored

    def replace(self, record: R) -> R:
        """
        Store a record, keeping the id of the record it replaces.

        Inserts when the key is not present yet.
        """
        key = self.key_fn(record)
        existing = self._rows.get(key)
        if existing is None:
            return self.insert(record)
        stored = record.with_id(existing.id)
        self._rows[key] = stored
        return stored

    def remove_where(self, predicate: Callable[[R], bool]) -> list[R]:
        """Remove and return every record matching the predicate."""
        doomed = [key for key, record in self._rows.items() if predicate(record)]
        return [self._rows.pop(key) for key in doomed]

    def clear(self) -> None:
        """Drop every record and reset the id counter."""
        self._rows.clear()
        self.next_id = 1

    def load(self, records: Iterable[R], next_id: int) -> None:
        """
        Replace the contents with previously persisted records.

        Persisted ids are kept. Records without an id get a fresh one after
        the counter has been raised past every persisted id. A later record
        with the same key wins.
        """
        self._rows.clear()
        unassigned: list[R] = []
        highest = 0
        for record in records:
            if record.id <= 0:
                unassigned.append(record)
                continue
            self._rows[self.key_fn(record)] = record
            highest = max(highest, record.id)

        self.next_id = max(next_id, highest + 1, 1)
        for record in unassigned:
            self.replace(record)
