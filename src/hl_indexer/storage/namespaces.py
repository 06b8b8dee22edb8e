"""
Database namespace definitions for storage tables.

Defines table names and schema constants for SQLite storage.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SnapshotNamespace:
    """
    Namespace for snapshot documents.

    One row per named document. The store uses a single row.
    """

    TABLE_NAME: str = "snapshots"
    """Table name for snapshot storage."""

    CREATE_TABLE: str = """
        CREATE TABLE IF NOT EXISTS snapshots (
            name TEXT PRIMARY KEY,
            document TEXT NOT NULL,
            updated_at INTEGER NOT NULL
        )
    """
    """SQL to create snapshots table."""

    STORE_ROW: str = "store"
    """Row name holding the store snapshot."""


SNAPSHOTS = SnapshotNamespace()
