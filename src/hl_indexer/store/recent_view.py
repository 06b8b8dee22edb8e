"""
Recent views.

A recent view is a projection of one entity table onto the freshness
window, sorted newest first. It always equals::

    sorted(r for r in table if now - lookback <= r.timestamp <= now + skew)

Maintaining it by re-filtering the whole table on every read would make
range queries linear in the table size. Instead, single upserts add,
remove, or reposition exactly one member using binary search, and reads
only touch the edges:

- members that aged past the lookback are popped from the tail,
- records that were too far in the future when written are parked, then
  promoted once the clock catches up with them.

Bulk changes (eviction, reload) call `rebuild`.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from hl_indexer.chain import FreshnessWindow, WallClock
from hl_indexer.types import RecordModel

K = TypeVar("K", bound=Hashable)
R = TypeVar("R", bound=RecordModel)

SortKey = tuple[int, int]
"""Ascending sort key that orders records newest first."""


@dataclass(slots=True)
class RecentView(Generic[K, R]):
    """Newest-first projection of records inside the freshness window."""

    key_fn: Callable[[R], K]
    """Extracts the natural key of a record."""

    tiebreak_fn: Callable[[R], int]
    """Orders records sharing a timestamp (larger first)."""

    window: FreshnessWindow
    """Bounds of the view."""

    clock: WallClock
    """Source of "now"."""

    _entries: list[R] = field(default_factory=list, init=False, repr=False)
    """Members, newest first."""

    _order: list[SortKey] = field(default_factory=list, init=False, repr=False)
    """Sort keys parallel to `_entries`, ascending."""

    _members: dict[K, SortKey] = field(default_factory=dict, init=False, repr=False)
    """Sort key of each member by natural key."""

    _deferred: dict[K, R] = field(default_factory=dict, init=False, repr=False)
    """Records currently beyond the future edge of the window."""

    def sort_key(self, record: R) -> SortKey:
        """Sort key placing newer records first."""
        return (-record.timestamp, -self.tiebreak_fn(record))

    def __len__(self) -> int:
        self._refresh(self.clock.now())
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        self._refresh(self.clock.now())
        return key in self._members

    def items(self, limit: int | None = None) -> list[R]:
        """Members newest first, at most `limit` of them."""
        self._refresh(self.clock.now())
        return self._entries[:limit]

    def first(self) -> R | None:
        """Newest member, if any."""
        self._refresh(self.clock.now())
        return self._entries[0] if self._entries else None

    def upsert(self, record: R) -> None:
        """Add a record, or reposition it if its key is already a member."""
        key = self.key_fn(record)
        self._discard(key)
        self._place(key, record, self.clock.now())

    def remove(self, key: K) -> None:
        """Drop the record with this key, if present."""
        self._discard(key)

    def rebuild(self, records: Iterable[R]) -> None:
        """Recompute the view from scratch."""
        now = self.clock.now()
        lower = self.window.lower_bound(now)
        upper = self.window.upper_bound(now)

        self._deferred.clear()
        members: list[tuple[SortKey, R]] = []
        for record in records:
            if record.timestamp > upper:
                self._deferred[self.key_fn(record)] = record
            elif record.timestamp >= lower:
                members.append((self.sort_key(record), record))

        members.sort(key=lambda pair: pair[0])
        self._order = [sort_key for sort_key, _ in members]
        self._entries = [record for _, record in members]
        self._members = {self.key_fn(record): sort_key for sort_key, record in members}

    def _place(self, key: K, record: R, now: int) -> None:
        if record.timestamp > self.window.upper_bound(now):
            self._deferred[key] = record
            return
        if record.timestamp < self.window.lower_bound(now):
            return

        sort_key = self.sort_key(record)
        position = bisect_right(self._order, sort_key)
        self._order.insert(position, sort_key)
        self._entries.insert(position, record)
        self._members[key] = sort_key

    def _discard(self, key: K) -> None:
        self._deferred.pop(key, None)
        sort_key = self._members.pop(key, None)
        if sort_key is None:
            return

        # Equal sort keys are adjacent; scan them for the exact member.
        position = bisect_left(self._order, sort_key)
        while self.key_fn(self._entries[position]) != key:
            position += 1
        del self._order[position]
        del self._entries[position]

    def _refresh(self, now: int) -> None:
        lower = self.window.lower_bound(now)
        upper = self.window.upper_bound(now)

        while self._entries and self._entries[-1].timestamp < lower:
            stale = self._entries.pop()
            self._order.pop()
            del self._members[self.key_fn(stale)]

        # Clock moved backwards: park members that are now too far ahead.
        while self._entries and self._entries[0].timestamp > upper:
            ahead = self._entries.pop(0)
            self._order.pop(0)
            key = self.key_fn(ahead)
            del self._members[key]
            self._deferred[key] = ahead

        if self._deferred:
            due = [key for key, record in self._deferred.items() if record.timestamp <= upper]
            for key in due:
                self._place(key, self._deferred.pop(key), now)
