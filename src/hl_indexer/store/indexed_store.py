"""
Indexed Store
=============

In-memory record set with secondary indexes and recent views.

Every record type lives in one primary table keyed by its natural key.
On top of the tables the store maintains:

- secondary indexes (transactions by user, by action type and by height;
  trades by symbol) so that indexed lookups never scan a table,
- recent views over blocks, transactions, validators, vaults and transfers,
  sorted newest first and bounded by the freshness window.

Mutations are synchronous. On a single event loop that makes each upsert
atomic with respect to readers: no reader observes a table updated but an
index not yet updated.

Write policies per entity type:

- Block, Transaction, MarketSnapshot: replace the whole record, keep the id.
- Validator, Vault: merge fields onto the stored record, keep the id.
- Transfer, Trade: insert once; writing an existing key is a no-op.

A transaction that already knows its block hash never loses it to a
later write without one.
"""

from __future__ import annotations

import heapq
import logging
from collections.abc import Callable, Hashable, Iterable
from operator import attrgetter
from typing import TypeVar

from hl_indexer.chain import FreshnessWindow, WallClock
from hl_indexer.records import (
    Block,
    MarketSnapshot,
    Trade,
    TradeKey,
    Transaction,
    Transfer,
    Validator,
    Vault,
)
from hl_indexer.types import CamelModel, RecordModel

from .config import DEFAULT_BLOCK_LIMIT, DEFAULT_QUERY_LIMIT, STATS_WINDOW_SECONDS
from .recent_view import RecentView
from .snapshot import NextIds, StoreSnapshot
from .table import EntityTable

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
R = TypeVar("R", bound=RecordModel)
V = TypeVar("V", bound=Hashable)


class StoreStats(CamelModel):
    """Aggregate counters served by the stats endpoint and CLI."""

    total_markets: int
    total_trades: int
    total_blocks: int
    """Blocks with a timestamp in the stats window."""

    total_transactions: int
    """Transactions with a timestamp in the stats window."""

    unique_users: int
    action_types: int
    latest_block_number: int | None
    total_validators: int
    total_vaults: int
    total_transfers: int


def _newest_first(record: RecordModel) -> tuple[int, int]:
    return (-record.timestamp, -record.id)


def _add(index: dict[V, set[K]], value: V, key: K) -> None:
    index.setdefault(value, set()).add(key)


def _drop(index: dict[V, set[K]], value: V, key: K) -> None:
    keys = index.get(value)
    if keys is None:
        return
    keys.discard(key)
    if not keys:
        del index[value]


class IndexedStore:
    """
    Authoritative in-memory record set.

    The `on_change` hook is called after every mutation that changed state.
    The composition root points it at the persistence writer.
    """

    def __init__(
        self,
        clock: WallClock | None = None,
        window: FreshnessWindow | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        """
        Initialize an empty store.

        Args:
            clock: Source of "now" for recent views and statistics.
            window: Bounds of the recent views.
            on_change: Called after each state-changing mutation.
        """
        self.clock = clock or WallClock()
        self.window = window or FreshnessWindow()
        self.on_change = on_change

        self._blocks: EntityTable[int, Block] = EntityTable(attrgetter("block_number"))
        self._transactions: EntityTable[str, Transaction] = EntityTable(attrgetter("hash"))
        self._validators: EntityTable[str, Validator] = EntityTable(attrgetter("address"))
        self._vaults: EntityTable[str, Vault] = EntityTable(attrgetter("address"))
        self._transfers: EntityTable[str, Transfer] = EntityTable(attrgetter("hash"))
        self._trades: EntityTable[TradeKey, Trade] = EntityTable(attrgetter("key"))
        self._markets: EntityTable[str, MarketSnapshot] = EntityTable(attrgetter("symbol"))

        # Secondary indexes.
        #
        # Each maps an attribute value to the natural keys holding it.
        # Empty sets are removed so the indexes never outgrow the live set.
        self._tx_by_user: dict[str, set[str]] = {}
        self._tx_by_action: dict[str, set[str]] = {}
        self._tx_by_height: dict[int, set[str]] = {}
        self._trades_by_symbol: dict[str, set[TradeKey]] = {}
        self._highest_block: int | None = None

        self._recent_blocks: RecentView[int, Block] = self._view(
            attrgetter("block_number"), attrgetter("block_number")
        )
        self._recent_transactions: RecentView[str, Transaction] = self._view(
            attrgetter("hash"), attrgetter("id")
        )
        self._recent_validators: RecentView[str, Validator] = self._view(
            attrgetter("address"), attrgetter("id")
        )
        self._recent_vaults: RecentView[str, Vault] = self._view(
            attrgetter("address"), attrgetter("id")
        )
        self._recent_transfers: RecentView[str, Transfer] = self._view(
            attrgetter("hash"), attrgetter("id")
        )

    def _view(self, key_fn: Callable[[R], K], tiebreak_fn: Callable[[R], int]) -> RecentView:
        return RecentView(
            key_fn=key_fn, tiebreak_fn=tiebreak_fn, window=self.window, clock=self.clock
        )

    # -------------------------------------------------------------------------
    # Upserts
    # -------------------------------------------------------------------------

    def upsert_block(self, block: Block) -> Block:
        """Insert or replace a block, keeping its id."""
        stored = self._blocks.replace(block)
        if self._highest_block is None or stored.block_number > self._highest_block:
            self._highest_block = stored.block_number
        self._recent_blocks.upsert(stored)
        self._changed()
        return stored

    def upsert_transaction(self, transaction: Transaction) -> Transaction:
        """
        Insert or replace a transaction, keeping its id.

        An empty incoming block hash never clears a known one.
        """
        existing = self._transactions.get(transaction.hash)
        if existing is not None:
            if not transaction.block_hash and existing.block_hash:
                transaction = transaction.model_copy(update={"block_hash": existing.block_hash})
            self._unindex_transaction(existing)

        stored = self._transactions.replace(transaction)
        self._index_transaction(stored)
        self._recent_transactions.upsert(stored)
        self._changed()
        return stored

    def upsert_validator(self, validator: Validator) -> Validator:
        """Merge a validator onto the stored one, or insert it."""
        existing = self._validators.get(validator.address)
        if existing is None:
            stored = self._validators.insert(validator)
        else:
            stored = self._validators.replace(validator.merged_over(existing))
        self._recent_validators.upsert(stored)
        self._changed()
        return stored

    def upsert_vault(self, vault: Vault) -> Vault:
        """Merge a vault onto the stored one, or insert it."""
        existing = self._vaults.get(vault.address)
        if existing is None:
            stored = self._vaults.insert(vault)
        else:
            stored = self._vaults.replace(vault.merged_over(existing))
        self._recent_vaults.upsert(stored)
        self._changed()
        return stored

    def upsert_transfer(self, transfer: Transfer) -> Transfer:
        """Insert a transfer unless its hash is already stored."""
        existing = self._transfers.get(transfer.hash)
        if existing is not None:
            return existing
        stored = self._transfers.insert(transfer)
        self._recent_transfers.upsert(stored)
        self._changed()
        return stored

    def upsert_trade(self, trade: Trade) -> Trade:
        """Insert a trade unless its composite key is already stored."""
        existing = self._trades.get(trade.key)
        if existing is not None:
            return existing
        stored = self._trades.insert(trade)
        _add(self._trades_by_symbol, stored.symbol, stored.key)
        self._changed()
        return stored

    def upsert_market(self, market: MarketSnapshot) -> MarketSnapshot:
        """Insert or replace the snapshot for a symbol, keeping its id."""
        stored = self._markets.replace(market)
        self._changed()
        return stored

    # -------------------------------------------------------------------------
    # Blocks
    # -------------------------------------------------------------------------

    def get_block(self, block_number: int) -> Block | None:
        """Look up a block by height."""
        return self._blocks.get(block_number)

    def get_latest_block(self) -> Block | None:
        """Newest block by timestamp, falling back to the highest stored block."""
        newest = self._recent_blocks.first()
        if newest is not None:
            return newest
        return self.get_highest_block()

    def get_highest_block(self) -> Block | None:
        """Block with the greatest height."""
        if self._highest_block is None:
            return None
        return self._blocks.get(self._highest_block)

    def get_blocks(self, limit: int = DEFAULT_BLOCK_LIMIT) -> list[Block]:
        """Most recent blocks, newest first."""
        return self._range(self._recent_blocks, self._blocks, limit)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def get_transaction_by_hash(self, tx_hash: str) -> Transaction | None:
        """Look up a transaction by hash."""
        return self._transactions.get(tx_hash)

    def get_transactions(self, limit: int = DEFAULT_QUERY_LIMIT) -> list[Transaction]:
        """Most recent transactions, newest first."""
        return self._range(self._recent_transactions, self._transactions, limit)

    def get_transactions_by_user(
        self, address: str, limit: int = DEFAULT_QUERY_LIMIT
    ) -> list[Transaction]:
        """Transactions sent by an address (case-insensitive), newest first."""
        return self._lookup(self._transactions, self._tx_by_user.get(address.lower()), limit)

    def get_transactions_by_action_type(
        self, action_type: str, limit: int = DEFAULT_QUERY_LIMIT
    ) -> list[Transaction]:
        """Transactions carrying an action type, newest first."""
        return self._lookup(self._transactions, self._tx_by_action.get(action_type), limit)

    def get_transactions_at_height(self, block_number: int) -> list[Transaction]:
        """Every transaction recorded at a height."""
        hashes = sorted(self._tx_by_height.get(block_number, ()))
        return [tx for h in hashes if (tx := self._transactions.get(h)) is not None]

    # -------------------------------------------------------------------------
    # Validators, vaults, transfers
    # -------------------------------------------------------------------------

    def get_validators(self, limit: int = DEFAULT_QUERY_LIMIT) -> list[Validator]:
        """Most recently updated validators."""
        return self._range(self._recent_validators, self._validators, limit)

    def get_validator_by_address(self, address: str) -> Validator | None:
        """Look up a validator by address."""
        return self._validators.get(address)

    def get_vaults(self, limit: int = DEFAULT_QUERY_LIMIT) -> list[Vault]:
        """Most recently updated vaults."""
        return self._range(self._recent_vaults, self._vaults, limit)

    def get_vault_by_address(self, address: str) -> Vault | None:
        """Look up a vault by address."""
        return self._vaults.get(address)

    def get_transfers(self, limit: int = DEFAULT_QUERY_LIMIT) -> list[Transfer]:
        """Most recent transfers, newest first."""
        return self._range(self._recent_transfers, self._transfers, limit)

    def get_transfer_by_hash(self, tx_hash: str) -> Transfer | None:
        """Look up a transfer by hash."""
        return self._transfers.get(tx_hash)

    # -------------------------------------------------------------------------
    # Markets and trades
    # -------------------------------------------------------------------------

    def get_latest_market_data(self, symbol: str | None = None) -> list[MarketSnapshot]:
        """Latest snapshot of one market, or of every market ordered by symbol."""
        if symbol is not None:
            market = self._markets.get(symbol)
            return [market] if market is not None else []
        return sorted(self._markets, key=attrgetter("symbol"))

    def get_recent_trades(
        self, symbol: str | None = None, limit: int = DEFAULT_QUERY_LIMIT
    ) -> list[Trade]:
        """Most recent trades, optionally for one symbol, newest first."""
        if symbol is None:
            return heapq.nsmallest(max(limit, 0), self._trades, key=_newest_first)
        return self._lookup(self._trades, self._trades_by_symbol.get(symbol), limit)

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    def get_stats(self) -> StoreStats:
        """
        Summarize the store.

        Block and transaction counters cover the last 24 hours plus the
        future skew tolerated by the freshness window.
        """
        now = self.clock.now()
        since = now - STATS_WINDOW_SECONDS
        until = self.window.upper_bound(now)

        blocks = [b for b in self._blocks if since <= b.timestamp <= until]
        transactions = [t for t in self._transactions if since <= t.timestamp <= until]

        return StoreStats(
            total_markets=len(self._markets),
            total_trades=len(self._trades),
            total_blocks=len(blocks),
            total_transactions=len(transactions),
            unique_users=len({t.user_key for t in transactions if t.user}),
            action_types=len({t.action_type for t in transactions}),
            latest_block_number=max((b.block_number for b in blocks), default=None),
            total_validators=len(self._validators),
            total_vaults=len(self._vaults),
            total_transfers=len(self._transfers),
        )

    def counts(self) -> dict[str, int]:
        """Live record count per entity type."""
        return {
            "blocks": len(self._blocks),
            "transactions": len(self._transactions),
            "validators": len(self._validators),
            "vaults": len(self._vaults),
            "transfers": len(self._transfers),
            "trades": len(self._trades),
            "markets": len(self._markets),
        }

    # -------------------------------------------------------------------------
    # Bulk maintenance
    # -------------------------------------------------------------------------

    def rebuild_all(self) -> None:
        """Recompute every secondary index and recent view from the tables."""
        self._tx_by_user.clear()
        self._tx_by_action.clear()
        self._tx_by_height.clear()
        self._trades_by_symbol.clear()

        for transaction in self._transactions:
            self._index_transaction(transaction)
        for trade in self._trades:
            _add(self._trades_by_symbol, trade.symbol, trade.key)
        self._highest_block = max((b.block_number for b in self._blocks), default=None)

        self._recent_blocks.rebuild(self._blocks)
        self._recent_transactions.rebuild(self._transactions)
        self._recent_validators.rebuild(self._validators)
        self._recent_vaults.rebuild(self._vaults)
        self._recent_transfers.rebuild(self._transfers)

    def evict_older_than(self, cutoff: int) -> dict[str, int]:
        """
        Remove every record with a timestamp before `cutoff`.

        Id counters are left alone. Returns the number of removed records
        per entity type.
        """
        tables: dict[str, EntityTable] = {
            "blocks": self._blocks,
            "transactions": self._transactions,
            "validators": self._validators,
            "vaults": self._vaults,
            "transfers": self._transfers,
            "trades": self._trades,
            "markets": self._markets,
        }
        removed = {
            name: len(table.remove_where(lambda record: record.timestamp < cutoff))
            for name, table in tables.items()
        }

        self.rebuild_all()
        if any(removed.values()):
            self._changed()
        return removed

    def clear(self) -> None:
        """Drop every record and reset every id counter to 1."""
        for table in self._tables():
            table.clear()
        self.rebuild_all()
        self._changed()

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def snapshot(self) -> StoreSnapshot:
        """Capture the complete store contents."""
        return StoreSnapshot(
            markets=list(self._markets),
            trades=list(self._trades),
            blocks=list(self._blocks),
            hyperliquid_transactions=list(self._transactions),
            validators=list(self._validators),
            vaults=list(self._vaults),
            transfers=list(self._transfers),
            next_id=NextIds(
                markets=self._markets.next_id,
                trades=self._trades.next_id,
                blocks=self._blocks.next_id,
                hyperliquid_transactions=self._transactions.next_id,
                validators=self._validators.next_id,
                vaults=self._vaults.next_id,
                transfers=self._transfers.next_id,
            ),
        )

    def load_snapshot(self, snapshot: StoreSnapshot) -> None:
        """Replace the store contents with a snapshot. Does not mark dirty."""
        ids = snapshot.next_id
        self._markets.load(snapshot.markets, ids.markets)
        self._trades.load(snapshot.trades, ids.trades)
        self._blocks.load(snapshot.blocks, ids.blocks)
        self._transactions.load(snapshot.hyperliquid_transactions, ids.hyperliquid_transactions)
        self._validators.load(snapshot.validators, ids.validators)
        self._vaults.load(snapshot.vaults, ids.vaults)
        self._transfers.load(snapshot.transfers, ids.transfers)
        self.rebuild_all()

        logger.info(
            "Loaded snapshot: %s",
            ", ".join(f"{name}={count}" for name, count in self.counts().items()),
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: StoreSnapshot,
        clock: WallClock | None = None,
        window: FreshnessWindow | None = None,
    ) -> IndexedStore:
        """Create a store pre-loaded with a snapshot."""
        store = cls(clock=clock, window=window)
        store.load_snapshot(snapshot)
        return store

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _tables(self) -> Iterable[EntityTable]:
        return (
            self._blocks,
            self._transactions,
            self._validators,
            self._vaults,
            self._transfers,
            self._trades,
            self._markets,
        )

    def _index_transaction(self, transaction: Transaction) -> None:
        _add(self._tx_by_user, transaction.user_key, transaction.hash)
        _add(self._tx_by_action, transaction.action_type, transaction.hash)
        _add(self._tx_by_height, transaction.block_number, transaction.hash)

    def _unindex_transaction(self, transaction: Transaction) -> None:
        _drop(self._tx_by_user, transaction.user_key, transaction.hash)
        _drop(self._tx_by_action, transaction.action_type, transaction.hash)
        _drop(self._tx_by_height, transaction.block_number, transaction.hash)

    def _range(self, view: RecentView[K, R], table: EntityTable[K, R], limit: int) -> list[R]:
        """
        Newest-first slice served from a recent view.

        When the view cannot fill the page but the table holds records
        outside the window, the whole table is sorted instead.
        """
        if limit <= 0:
            return []
        recent = view.items(limit)
        if len(recent) >= limit or len(table) <= len(view):
            return recent
        return heapq.nsmallest(limit, table, key=view.sort_key)

    def _lookup(
        self, table: EntityTable[K, R], keys: Iterable[K] | None, limit: int
    ) -> list[R]:
        if not keys or limit <= 0:
            return []
        records = (table.get(key) for key in keys)
        return heapq.nsmallest(limit, (r for r in records if r is not None), key=_newest_first)

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()
