"""
SQLite database implementation for snapshot storage.

Keeps the snapshot document in a single row. SQLite's transactional
writes give the atomic replace the Database protocol requires without a
temporary file dance.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from pathlib import Path

from hl_indexer.store import StoreSnapshot

from .namespaces import SNAPSHOTS

logger = logging.getLogger(__name__)


class SQLiteDatabase:
    """
    SQLite implementation of the Database protocol.

    Stores the snapshot document as JSON text.
    """

    def __init__(self, path: Path | str) -> None:
        """
        Initialize SQLite database.

        Creates database file and tables if they don't exist.

        Args:
            path: Path to SQLite database file.
                  Use ":memory:" for in-memory database.
        """
        self._path = Path(path) if isinstance(path, str) else path
        if str(self._path) != ":memory:":
            self._path.parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(str(self._path))

        # Row factory enables dict-like access: row["column_name"].
        self._conn.row_factory = sqlite3.Row

        self._init_schema()

    def _init_schema(self) -> None:
        """Create tables if they don't exist."""
        self._conn.execute(SNAPSHOTS.CREATE_TABLE)
        self._conn.commit()

    def load_snapshot(self) -> StoreSnapshot | None:
        """Read the stored snapshot row."""
        cursor = self._conn.execute(
            "SELECT document FROM snapshots WHERE name = ?",
            (SNAPSHOTS.STORE_ROW,),
        )
        row = cursor.fetchone()
        if row is None:
            return None

        try:
            return StoreSnapshot.from_document(json.loads(row["document"]))
        except ValueError as e:
            logger.error("Failed to decode stored snapshot: %s", e)
            return None

    def save_snapshot(self, snapshot: StoreSnapshot) -> None:
        """Replace the stored snapshot row."""
        with self._conn:
            self._conn.execute(
                """
                INSERT OR REPLACE INTO snapshots (name, document, updated_at)
                VALUES (?, ?, ?)
                """,
                (SNAPSHOTS.STORE_ROW, snapshot.to_json(), int(time.time())),
            )

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
