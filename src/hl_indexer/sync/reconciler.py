"""
Cross-source reconciliation.

The activity feed reports a transaction's height but not its block hash.
Blocks fetched by height carry the hash and their own copy of each
transaction. The reconciler folds both views into one record per hash:

- a known block hash is attached as soon as the block is stored,
- heights whose block is not stored yet are reported for fetching,
- once such a block arrives, every transaction at that height still
  missing its hash is updated in place.

A populated block hash is never replaced by an empty one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from pydantic import ValidationError

from hl_indexer import metrics
from hl_indexer.records import Block, Transaction
from hl_indexer.store import IndexedStore
from hl_indexer.upstream import ActivityRecord, BlockDetails

from .convert import block_from_details, transaction_from_activity

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Reconciler:
    """Merges activity-feed and in-block transaction views into the store."""

    store: IndexedStore
    """Store receiving the reconciled records."""

    @staticmethod
    def fold(incoming: Transaction, known: Transaction | None) -> Transaction:
        """
        Fold two views of the same transaction.

        The incoming record wins, except that its block hash and height fall
        back to the known ones when it has none.
        """
        if known is None:
            return incoming

        updates: dict[str, object] = {}
        if not incoming.block_hash and known.block_hash:
            updates["block_hash"] = known.block_hash
        if not incoming.block_number and known.block_number:
            updates["block_number"] = known.block_number
        return incoming.model_copy(update=updates) if updates else incoming

    def ingest_activity(self, records: Iterable[ActivityRecord]) -> set[int]:
        """
        Store activity-feed transactions.

        Returns:
            Heights whose block must be fetched to fill in missing hashes.
        """
        needs_fetch: set[int] = set()
        seen: set[str] = set()
        stored_count = 0

        for record in records:
            if record.hash in seen:
                continue
            seen.add(record.hash)

            try:
                transaction = transaction_from_activity(record)
            except (ValidationError, ValueError, TypeError) as e:
                logger.debug("Skipping activity record %s: %s", record.hash, e)
                continue

            block = self.store.get_block(transaction.block_number)
            if block is not None and block.block_hash:
                transaction = transaction.model_copy(update={"block_hash": block.block_hash})

            known = self.store.get_transaction_by_hash(transaction.hash)
            stored = self.store.upsert_transaction(self.fold(transaction, known))

            stored_count += 1
            if not stored.block_hash and stored.block_number > 0:
                needs_fetch.add(stored.block_number)

        metrics.transactions_indexed.inc(stored_count)
        return needs_fetch

    def apply_block(self, details: BlockDetails) -> Block:
        """Store a fetched block and backfill the hashes at its height."""
        block = self.store.upsert_block(block_from_details(details))
        self.backfill_height(block)
        return block

    def backfill_height(self, block: Block) -> int:
        """
        Attach a block's hash to every transaction at its height lacking one.

        Returns:
            Number of transactions updated.
        """
        if not block.block_hash:
            return 0

        updated = 0
        for transaction in self.store.get_transactions_at_height(block.block_number):
            if transaction.block_hash:
                continue
            self.store.upsert_transaction(
                transaction.model_copy(update={"block_hash": block.block_hash})
            )
            updated += 1

        if updated:
            metrics.transactions_backfilled.inc(updated)
            logger.debug("Backfilled %d transactions at height %d", updated, block.block_number)
        return updated

    def ingest_block(self, details: BlockDetails) -> Block:
        """Store a fetched block together with every transaction it contains."""
        block = self.apply_block(details)

        ingested = 0
        for record in details.transactions():
            try:
                transaction = transaction_from_activity(
                    record, block_hash=block.block_hash, block_number=block.block_number
                )
            except (ValidationError, ValueError, TypeError) as e:
                logger.debug(
                    "Skipping transaction %s in block %d: %s", record.hash, block.block_number, e
                )
                continue

            known = self.store.get_transaction_by_hash(transaction.hash)
            self.store.upsert_transaction(self.fold(transaction, known))
            ingested += 1

        metrics.blocks_indexed.inc()
        metrics.transactions_indexed.inc(ingested)
        return block
