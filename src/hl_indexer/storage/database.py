"""
Database protocol for snapshot persistence.

The store is persisted as a whole: every flush writes one complete
snapshot document and every start reads one back. Backends only need to
store and return that single document.
"""

from __future__ import annotations

from typing import Protocol

from hl_indexer.store import StoreSnapshot


class Database(Protocol):
    """
    Protocol for snapshot storage backends.

    Implementations must be safe to call from the event loop thread.
    Writes replace the previous snapshot atomically: a crash mid-write
    leaves either the old or the new document, never a mix.
    """

    # -------------------------------------------------------------------------
    # Snapshot Operations
    # -------------------------------------------------------------------------

    def load_snapshot(self) -> StoreSnapshot | None:
        """
        Read the persisted snapshot.

        Returns:
            The snapshot, or None if nothing usable is stored.
        """
        ...

    def save_snapshot(self, snapshot: StoreSnapshot) -> None:
        """
        Replace the persisted snapshot.

        Raises:
            OSError or a backend error if the write fails.
        """
        ...

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Release any held resources."""
        ...
