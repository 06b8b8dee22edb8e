"""
Snapshot persistence.

Backends implementing the Database protocol and the debounced writer that
feeds them.
"""

from __future__ import annotations

from pathlib import Path

from .database import Database
from .json_file import JsonFileDatabase
from .sqlite import SQLiteDatabase
from .writer import SAVE_DELAY_SECONDS, PersistenceWriter

SQLITE_SUFFIXES = frozenset({".db", ".sqlite", ".sqlite3"})
"""File suffixes opened with the SQLite backend."""


def open_database(path: Path | str) -> Database:
    """Open the backend matching a path: SQLite for database files, JSON otherwise."""
    path = Path(path)
    if str(path) == ":memory:" or path.suffix in SQLITE_SUFFIXES:
        return SQLiteDatabase(path)
    return JsonFileDatabase(path)


__all__ = [
    "Database",
    "JsonFileDatabase",
    "PersistenceWriter",
    "SAVE_DELAY_SECONDS",
    "SQLITE_SUFFIXES",
    "SQLiteDatabase",
    "open_database",
]
