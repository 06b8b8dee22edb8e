"""Tests for cross-source reconciliation."""

from __future__ import annotations

from hl_indexer.store import IndexedStore
from hl_indexer.sync import Reconciler
from tests.hl_indexer.helpers import (
    make_activity,
    make_block,
    make_block_details,
    make_transaction,
    raw_activity,
)


def _block_hash(store: IndexedStore, tx_hash: str) -> str:
    transaction = store.get_transaction_by_hash(tx_hash)
    assert transaction is not None
    return transaction.block_hash


class TestFold:
    """Tests for folding two views of one transaction."""

    def test_no_known_record(self) -> None:
        """Without a known record the incoming one is used."""
        incoming = make_transaction("0x1")

        assert Reconciler.fold(incoming, None) is incoming

    def test_known_hash_kept(self) -> None:
        """An incoming record without a block hash inherits the known one."""
        known = make_transaction("0x1", block_hash="0xblock", block_number=5)
        incoming = make_transaction("0x1", block_number=0, action_type="cancel")

        folded = Reconciler.fold(incoming, known)

        assert folded.block_hash == "0xblock"
        assert folded.block_number == 5
        assert folded.action_type == "cancel"

    def test_incoming_hash_wins(self) -> None:
        """A populated incoming block hash is used."""
        known = make_transaction("0x1", block_hash="0xold")
        incoming = make_transaction("0x1", block_hash="0xnew")

        assert Reconciler.fold(incoming, known).block_hash == "0xnew"


class TestIngestActivity:
    """Tests for activity-feed ingestion."""

    def test_reports_missing_heights(self, store: IndexedStore) -> None:
        """Heights without a stored block are returned for fetching."""
        heights = Reconciler(store).ingest_activity(
            [make_activity("0x1", 10), make_activity("0x2", 11), make_activity("0x3", 10)]
        )

        assert heights == {10, 11}
        assert _block_hash(store, "0x1") == ""

    def test_attaches_known_block_hash(self, store: IndexedStore) -> None:
        """A stored block's hash is attached immediately."""
        store.upsert_block(make_block(10, block_hash="0xten"))

        heights = Reconciler(store).ingest_activity([make_activity("0x1", 10)])

        assert heights == set()
        assert _block_hash(store, "0x1") == "0xten"

    def test_duplicate_hashes_in_batch(self, store: IndexedStore) -> None:
        """The first occurrence of a hash in a batch wins."""
        Reconciler(store).ingest_activity(
            [
                make_activity("0x1", 10, action={"type": "order"}),
                make_activity("0x1", 10, action={"type": "cancel"}),
            ]
        )

        stored = store.get_transaction_by_hash("0x1")
        assert stored is not None
        assert stored.action_type == "order"
        assert store.counts()["transactions"] == 1

    def test_known_hash_survives_refeed(self, store: IndexedStore) -> None:
        """Seeing a transaction in the feed again does not clear its hash."""
        store.upsert_transaction(make_transaction("0x1", block_number=10, block_hash="0xten"))

        heights = Reconciler(store).ingest_activity([make_activity("0x1", 10)])

        assert heights == set()
        assert _block_hash(store, "0x1") == "0xten"

    def test_height_zero_not_requested(self, store: IndexedStore) -> None:
        """Records without a height are stored but never trigger a fetch."""
        assert Reconciler(store).ingest_activity([make_activity("0x1", 0)]) == set()


class TestBlocks:
    """Tests for block ingestion and backfill."""

    def test_apply_block_backfills(self, store: IndexedStore) -> None:
        """A late block fills in every transaction at its height."""
        reconciler = Reconciler(store)
        reconciler.ingest_activity([make_activity("0x1", 10), make_activity("0x2", 10)])

        reconciler.apply_block(make_block_details(10, block_hash="0xten"))

        for tx_hash in ("0x1", "0x2"):
            assert _block_hash(store, tx_hash) == "0xten"

    def test_backfill_only_touches_missing(self, store: IndexedStore) -> None:
        """Transactions that already know a hash are left alone."""
        store.upsert_transaction(make_transaction("0x1", block_number=10, block_hash="0xkept"))
        store.upsert_transaction(make_transaction("0x2", block_number=10))

        updated = Reconciler(store).backfill_height(make_block(10, block_hash="0xten"))

        assert updated == 1
        assert _block_hash(store, "0x1") == "0xkept"

    def test_backfill_without_hash(self, store: IndexedStore) -> None:
        """A block without a hash cannot fill anything."""
        store.upsert_transaction(make_transaction("0x1", block_number=10))

        assert Reconciler(store).backfill_height(make_block(10, block_hash="")) == 0

    def test_ingest_block_stores_transactions(self, store: IndexedStore) -> None:
        """In-block transactions are stored with the block's hash and height."""
        details = make_block_details(
            20,
            block_hash="0xtwenty",
            txs=[raw_activity("0xa", 0, user="0xU"), raw_activity("0xb", 20), {"bad": True}],
        )

        block = Reconciler(store).ingest_block(details)

        assert block.block_number == 20
        assert store.get_block(20) is not None
        at_height = store.get_transactions_at_height(20)
        assert sorted(tx.hash for tx in at_height) == ["0xa", "0xb"]
        assert {tx.block_hash for tx in at_height} == {"0xtwenty"}
