"""
Retention.

Keeps the store bounded: a sweep evicts everything older than a cutoff,
a reset empties the store. Both write the result out immediately rather
than waiting for the debounce timer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from hl_indexer import metrics

from .config import DEFAULT_RETENTION_SECONDS
from .indexed_store import IndexedStore

if TYPE_CHECKING:
    from hl_indexer.storage import PersistenceWriter

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RetentionManager:
    """Time-based eviction and full reset of an IndexedStore."""

    store: IndexedStore
    """Store to trim."""

    writer: PersistenceWriter | None = None
    """Writer flushed after each sweep or reset."""

    def sweep(self, max_age_seconds: int = DEFAULT_RETENTION_SECONDS) -> dict[str, int]:
        """
        Evict every record older than `max_age_seconds`.

        Indexes and recent views are rebuilt before this returns.

        Returns:
            Number of removed records per entity type.

        Raises:
            ValueError: If the age is negative.
        """
        if max_age_seconds < 0:
            raise ValueError(f"max_age_seconds must be non-negative, got {max_age_seconds}")

        cutoff = self.store.clock.now() - max_age_seconds
        removed = self.store.evict_older_than(cutoff)
        self._flush()

        for entity, count in removed.items():
            if count:
                metrics.records_evicted.labels(entity=entity).inc(count)

        logger.info(
            "Retention sweep (max age %ds) removed %d blocks, %d transactions, %d records total",
            max_age_seconds,
            removed["blocks"],
            removed["transactions"],
            sum(removed.values()),
        )
        return removed

    def clear_old_data(self, hours_old: float = DEFAULT_RETENTION_SECONDS / 3600) -> dict[str, int]:
        """Evict records older than a number of hours."""
        return self.sweep(int(hours_old * 3600))

    def reset_all(self) -> None:
        """Empty every collection, reset id counters, and flush."""
        self.store.clear()
        self._flush()
        logger.info("Store reset: all records cleared")

    clear_all_data = reset_all

    def _flush(self) -> None:
        if self.writer is not None:
            self.writer.flush()
