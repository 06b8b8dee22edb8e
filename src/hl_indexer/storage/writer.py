"""
Debounced write-behind persistence.

Every store mutation marks the writer dirty and re-arms a short timer.
When the timer fires, the whole snapshot is written in one go. A burst of
upserts therefore costs a single write.

The timer runs on the event loop. Without a running loop (CLI one-shots,
synchronous tests) nothing is scheduled and the data stays dirty until an
explicit `flush()` or `close()`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Final

from hl_indexer import metrics
from hl_indexer.store import StoreSnapshot

from .database import Database

logger = logging.getLogger(__name__)

SAVE_DELAY_SECONDS: Final[float] = 0.1
"""Quiet period after the last mutation before a flush."""


@dataclass(slots=True)
class PersistenceWriter:
    """Coalesces store mutations into debounced snapshot writes."""

    database: Database
    """Backend receiving the snapshots."""

    snapshot_fn: Callable[[], StoreSnapshot]
    """Captures the current store contents."""

    delay: float = SAVE_DELAY_SECONDS
    """Debounce period in seconds."""

    _dirty: bool = field(default=False, init=False)
    """Whether there are unsaved mutations."""

    _timer: asyncio.TimerHandle | None = field(default=None, init=False, repr=False)
    """Pending flush, if armed."""

    @property
    def is_dirty(self) -> bool:
        """Whether there are unsaved mutations."""
        return self._dirty

    def mark_dirty(self) -> None:
        """Record a mutation and restart the debounce timer."""
        self._dirty = True
        self._cancel_timer()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timer = loop.call_later(self.delay, self.flush)

    def flush(self) -> bool:
        """
        Write the snapshot now if there are unsaved mutations.

        Failures are logged and leave the writer dirty so the next trigger
        retries.

        Returns:
            True if the store is clean afterwards.
        """
        self._cancel_timer()
        if not self._dirty:
            return True

        try:
            self.database.save_snapshot(self.snapshot_fn())
        except Exception as e:
            metrics.persistence_failures.inc()
            logger.error("Failed to persist snapshot: %s", e)
            return False

        self._dirty = False
        metrics.persistence_flushes.inc()
        return True

    def close(self) -> bool:
        """Cancel any pending timer and perform a final flush."""
        return self.flush()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
