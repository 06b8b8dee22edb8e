"""Tests for retention sweeps and resets."""

from __future__ import annotations

import pytest

from hl_indexer.storage import PersistenceWriter
from hl_indexer.store import IndexedStore, RetentionManager
from tests.hl_indexer.helpers import (
    NOW,
    MemoryDatabase,
    make_block,
    make_trade,
    make_transaction,
    make_transfer,
)


@pytest.fixture
def database() -> MemoryDatabase:
    """In-memory snapshot backend."""
    return MemoryDatabase()


@pytest.fixture
def retention(store: IndexedStore, database: MemoryDatabase) -> RetentionManager:
    """Retention manager wired to a writer over the memory backend."""
    writer = PersistenceWriter(database, store.snapshot)
    store.on_change = writer.mark_dirty
    return RetentionManager(store, writer)


class TestSweep:
    """Tests for time-based eviction."""

    def test_removes_old_records(self, store: IndexedStore, retention: RetentionManager) -> None:
        """Records older than the age are evicted."""
        store.upsert_block(make_block(1, NOW - 7200))
        store.upsert_block(make_block(2, NOW - 60))
        store.upsert_transaction(make_transaction("0xold", timestamp=NOW - 4000))

        removed = retention.sweep(3600)

        assert removed["blocks"] == 1
        assert removed["transactions"] == 1
        assert store.get_block(1) is None
        assert store.get_block(2) is not None

    def test_flushes_immediately(
        self, store: IndexedStore, retention: RetentionManager, database: MemoryDatabase
    ) -> None:
        """A sweep writes the result without waiting for the debounce."""
        store.upsert_block(make_block(1, NOW - 7200))

        retention.sweep(3600)

        assert database.snapshot is not None
        assert database.snapshot.blocks == []

    def test_negative_age_rejected(self, retention: RetentionManager) -> None:
        """Negative ages make no sense."""
        with pytest.raises(ValueError):
            retention.sweep(-1)

    def test_clear_old_data_in_hours(
        self, store: IndexedStore, retention: RetentionManager
    ) -> None:
        """The hours form converts to seconds."""
        store.upsert_block(make_block(1, NOW - 3 * 3600))
        store.upsert_block(make_block(2, NOW - 3600))

        removed = retention.clear_old_data(2)

        assert removed["blocks"] == 1
        assert store.get_block(2) is not None

    def test_indexes_forget_evicted_keys(
        self, store: IndexedStore, retention: RetentionManager
    ) -> None:
        """After a sweep no index lookup returns an evicted record."""
        old = NOW - 2 * 3600
        store.upsert_block(make_block(7, old))
        store.upsert_transaction(
            make_transaction("0xold", block_number=7, timestamp=old, user="0xAlice")
        )
        store.upsert_transaction(
            make_transaction("0xnew", block_number=8, timestamp=NOW - 60, user="0xAlice")
        )
        store.upsert_trade(make_trade("BTC", timestamp=old, tx_hash="0xtrade-old"))
        store.upsert_trade(make_trade("BTC", timestamp=NOW - 60, tx_hash="0xtrade-new"))
        store.upsert_transfer(make_transfer("0xsend-old", timestamp=old))

        retention.clear_old_data(1)

        assert store.get_block(7) is None
        assert store.get_transaction_by_hash("0xold") is None
        assert [t.hash for t in store.get_transactions_by_user("0xalice")] == ["0xnew"]
        assert [t.hash for t in store.get_transactions_by_action_type("order")] == ["0xnew"]
        assert store.get_transactions_at_height(7) == []
        assert [t.tx_hash for t in store.get_recent_trades("BTC")] == ["0xtrade-new"]
        assert store.get_transfer_by_hash("0xsend-old") is None


class TestReset:
    """Tests for full reset."""

    def test_reset_all(
        self, store: IndexedStore, retention: RetentionManager, database: MemoryDatabase
    ) -> None:
        """Reset empties the store, resets ids and persists the empty state."""
        store.upsert_block(make_block(1))
        store.upsert_transaction(make_transaction("0x1"))

        retention.clear_all_data()

        assert store.counts()["blocks"] == 0
        assert database.snapshot is not None
        assert database.snapshot.next_id.blocks == 1
        assert store.upsert_block(make_block(5)).id == 1

    def test_without_writer(self, store: IndexedStore) -> None:
        """Retention works on a store without persistence."""
        store.upsert_block(make_block(1, NOW - 9999))

        assert RetentionManager(store).sweep(0)["blocks"] == 1
