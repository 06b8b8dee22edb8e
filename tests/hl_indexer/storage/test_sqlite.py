"""Tests for the SQLite backend."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from hl_indexer.storage import SQLiteDatabase
from hl_indexer.store import IndexedStore, StoreSnapshot
from tests.hl_indexer.helpers import make_block, make_vault


@pytest.fixture
def db() -> Generator[SQLiteDatabase, None, None]:
    """Create an in-memory SQLite database for testing."""
    database = SQLiteDatabase(":memory:")
    yield database
    database.close()


class TestSnapshotRow:
    """Tests for the single snapshot row."""

    def test_empty_database(self, db: SQLiteDatabase) -> None:
        """Nothing stored yet loads as None."""
        assert db.load_snapshot() is None

    def test_save_and_load(self, db: SQLiteDatabase, store: IndexedStore) -> None:
        """The snapshot survives a round trip through the row."""
        store.upsert_block(make_block(1))
        store.upsert_vault(make_vault("0xv", name="Alpha"))

        db.save_snapshot(store.snapshot())
        loaded = db.load_snapshot()

        assert loaded is not None
        assert loaded.vaults[0].name == "Alpha"
        assert loaded.next_id.blocks == 2

    def test_save_overwrites(self, db: SQLiteDatabase, store: IndexedStore) -> None:
        """Each save replaces the previous snapshot."""
        db.save_snapshot(StoreSnapshot())
        store.upsert_block(make_block(9))
        db.save_snapshot(store.snapshot())

        loaded = db.load_snapshot()

        assert loaded is not None
        assert [b.block_number for b in loaded.blocks] == [9]

    def test_persists_across_connections(self, tmp_path: Path, store: IndexedStore) -> None:
        """A file database is readable after reopening."""
        path = tmp_path / "hl.db"
        store.upsert_block(make_block(3))

        first = SQLiteDatabase(path)
        first.save_snapshot(store.snapshot())
        first.close()

        second = SQLiteDatabase(path)
        try:
            loaded = second.load_snapshot()
        finally:
            second.close()

        assert loaded is not None
        assert loaded.blocks[0].block_number == 3
