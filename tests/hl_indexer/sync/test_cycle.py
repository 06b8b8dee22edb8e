"""Tests for the sync cycle."""

from __future__ import annotations

import pytest

from hl_indexer.store import IndexedStore, RetentionManager
from hl_indexer.sync import Reconciler, SyncCycle, TipDiscovery
from hl_indexer.upstream import (
    ActivityRecord,
    MarketDescriptor,
    TradeRecord,
    ValidatorSummary,
    VaultSummary,
)
from tests.hl_indexer.helpers import (
    NOW,
    MockActivitySource,
    MockChainSource,
    make_activity,
    make_block,
    raw_activity,
)

FLOOR = 1_000


@pytest.fixture
def chain() -> MockChainSource:
    """Chain source with no blocks."""
    return MockChainSource()


@pytest.fixture
def activity() -> MockActivitySource:
    """Activity source with no records."""
    return MockActivitySource()


def _cycle(
    chain: MockChainSource,
    activity: MockActivitySource,
    store: IndexedStore,
    sweep: bool = False,
    **kwargs: int,
) -> SyncCycle:
    return SyncCycle(
        chain=chain,
        activity=activity,
        store=store,
        reconciler=Reconciler(store),
        tip_discovery=TipDiscovery(
            source=chain,
            store=store,
            window=store.window,
            probe_delay=0,
            safe_floor=FLOOR,
            min_trusted_height=FLOOR,
        ),
        retention=RetentionManager(store),
        rng=lambda: 0.0 if sweep else 1.0,
        block_delay=0,
        backfill_delay=0,
        trade_delay=0,
        **kwargs,
    )


def _block_hash(store: IndexedStore, tx_hash: str) -> str:
    transaction = store.get_transaction_by_hash(tx_hash)
    assert transaction is not None
    return transaction.block_hash


class TestActivityAndBackfill:
    """Tests for the activity and backfill stages."""

    async def test_backfills_missing_hashes(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """Feed transactions get their block hash within the same cycle."""
        activity.activity = [make_activity("0x1", 500), make_activity("0x2", 501)]
        chain.add_block(500, block_hash="0xfive")
        chain.add_block(501, block_hash="0xfive-one")

        report = await _cycle(chain, activity, store).run()

        assert report.activity_ingested == 2
        assert report.blocks_backfilled == 2
        assert _block_hash(store, "0x1") == "0xfive"
        assert _block_hash(store, "0x2") == "0xfive-one"

    async def test_refetches_stored_block_without_hash(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """A stored block lacking its hash is fetched again and fills in its transactions."""
        first = store.upsert_block(make_block(500, block_hash=""))
        activity.activity = [make_activity("0x1", 500)]
        chain.add_block(500, block_hash="0xfive")

        report = await _cycle(chain, activity, store).run()

        assert 500 in chain.request_log
        assert report.blocks_backfilled == 1
        refreshed = store.get_block(500)
        assert refreshed is not None
        assert refreshed.block_hash == "0xfive"
        assert refreshed.id == first.id
        assert _block_hash(store, "0x1") == "0xfive"

    async def test_backfill_newest_first_and_capped(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """Only the newest heights up to the cap are fetched."""
        activity.activity = [make_activity(f"0x{h}", h) for h in range(100, 110)]

        await _cycle(chain, activity, store, max_backfill=3).run()

        assert chain.request_log[:3] == [109, 108, 107]
        assert not set(chain.request_log) & set(range(100, 107))

    async def test_backfill_stops_on_failure(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """A transient failure ends the backfill stage without failing the cycle."""
        activity.activity = [make_activity("0x1", 300), make_activity("0x2", 200)]
        chain.failing.add(300)
        chain.add_block(200)

        report = await _cycle(chain, activity, store).run()

        assert 200 not in chain.request_log
        assert "backfill" not in report.failed_stages

    async def test_activity_failure_isolated(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """A failing activity feed does not stop later stages."""
        activity.should_fail = True
        chain.markets = [MarketDescriptor.from_wire({"name": "BTC"})]
        chain.mids = {"BTC": 1.0}

        report = await _cycle(chain, activity, store).run()

        assert report.failed_stages == ["activity"]
        assert not report.ok
        assert report.markets_updated == 1


class TestBlockRange:
    """Tests for the block range stage."""

    async def test_indexes_from_floor(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """Without a trusted tip, the last batch below the frontier is indexed."""
        chain.add_chain(FLOOR - 20, FLOOR + 3)

        report = await _cycle(chain, activity, store, batch_width=5).run()

        assert report.frontier == FLOOR + 3
        assert report.blocks_indexed == 5
        assert store.get_highest_block().block_number == FLOOR + 3  # type: ignore[union-attr]
        assert store.get_block(FLOOR - 2) is None

    async def test_continues_from_trusted_tip(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """With a trusted tip, indexing resumes right after it."""
        store.upsert_block(make_block(FLOOR + 10, NOW - 30))
        chain.add_chain(FLOOR + 11, FLOOR + 40)

        report = await _cycle(chain, activity, store, batch_width=10).run()

        assert report.blocks_indexed == 10
        assert store.get_highest_block().block_number == FLOOR + 20  # type: ignore[union-attr]

    async def test_stale_blocks_rejected(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """Blocks in the range but outside the window are not stored."""
        chain.add_block(FLOOR - 5, block_time=NOW - 20_000)
        chain.add_chain(FLOOR - 4, FLOOR + 2)

        report = await _cycle(chain, activity, store, batch_width=10).run()

        assert report.frontier == FLOOR + 2
        assert report.blocks_indexed == 7
        assert store.get_block(FLOOR - 5) is None
        assert store.get_block(FLOOR - 4) is not None

    async def test_in_block_transactions_indexed(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """Transactions inside indexed blocks are stored with their block hash."""
        store.upsert_block(make_block(FLOOR + 10, NOW - 30))
        chain.add_block(FLOOR + 11, txs=[raw_activity("0xin", FLOOR + 11)])

        await _cycle(chain, activity, store).run()

        tx = store.get_transaction_by_hash("0xin")
        assert tx is not None
        assert tx.block_hash == f"0xblock{FLOOR + 11}"


class TestSummaries:
    """Tests for markets, trades, validators, vaults and transfers."""

    async def test_markets_and_trades(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """Active markets are priced; trades are fetched for each of them."""
        chain.markets = [
            MarketDescriptor.from_wire({"name": "BTC"}),
            MarketDescriptor.from_wire({"name": "OLD", "isDelisted": True}),
        ]
        chain.mids = {"BTC": 65_000.0}
        chain.trades = {
            "BTC": [
                TradeRecord.from_wire(
                    {"coin": "BTC", "side": "B", "px": 1, "sz": 1, "time": NOW * 1000, "hash": "0x"}
                )
            ]
        }

        report = await _cycle(chain, activity, store).run()

        assert [m.symbol for m in store.get_latest_market_data()] == ["BTC"]
        assert chain.trade_requests == ["BTC"]
        assert report.trades_ingested == 1

    async def test_trade_markets_capped(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """Trades are fetched for at most the configured number of markets."""
        chain.markets = [MarketDescriptor.from_wire({"name": f"M{i}"}) for i in range(5)]

        await _cycle(chain, activity, store, max_trade_markets=2).run()

        assert chain.trade_requests == ["M0", "M1"]

    async def test_validators_vaults_transfers(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """Network summaries and transfers are stored."""
        chain.validators = [ValidatorSummary.from_wire({"validator": "0xv", "isActive": True})]
        chain.vaults = [VaultSummary.from_wire({"vaultAddress": "0xvault", "name": "HLP"})]
        activity.transfers = [
            ActivityRecord.from_wire(
                raw_activity("0xt", 5, action={"type": "sendAsset", "amount": "1"})
            )
        ]

        report = await _cycle(chain, activity, store).run()

        assert report.validators_updated == 1
        assert report.vaults_updated == 1
        assert report.transfers_ingested == 1
        assert store.get_transfer_by_hash("0xt") is not None

    async def test_chain_failure_isolated_per_stage(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """Failing summary calls fail their own stages only."""
        chain.should_fail = True
        activity.transfers = [
            ActivityRecord.from_wire(
                raw_activity("0xt", 5, action={"type": "sendAsset", "amount": "1"})
            )
        ]

        report = await _cycle(chain, activity, store).run()

        assert "markets" in report.failed_stages
        assert "validators" in report.failed_stages
        assert report.transfers_ingested == 1

    async def test_malformed_transfer_skipped(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """A transfer with a non-numeric amount is skipped; its neighbours are stored."""
        activity.transfers = [
            ActivityRecord.from_wire(raw_activity(tx_hash, 5, action=action))
            for tx_hash, action in [
                ("0xgood1", {"type": "sendAsset", "amount": "1.5"}),
                ("0xbad", {"type": "sendAsset", "amount": {"x": 1}}),
                ("0xgood2", {"type": "sendAsset", "amount": "2"}),
            ]
        ]

        report = await _cycle(chain, activity, store).run()

        assert "transfers" not in report.failed_stages
        assert report.transfers_ingested == 2
        assert store.get_transfer_by_hash("0xbad") is None
        good2 = store.get_transfer_by_hash("0xgood2")
        assert good2 is not None
        assert good2.amount == 2.0


class TestRetention:
    """Tests for the occasional retention sweep."""

    async def test_sweep_when_drawn(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """A winning draw sweeps old records."""
        store.upsert_block(make_block(1, NOW - 10_000))

        report = await _cycle(chain, activity, store, sweep=True).run()

        assert report.swept is not None
        assert report.swept["blocks"] == 1
        assert store.get_block(1) is None

    async def test_no_sweep_otherwise(
        self, chain: MockChainSource, activity: MockActivitySource, store: IndexedStore
    ) -> None:
        """A losing draw leaves old records in place."""
        store.upsert_block(make_block(1, NOW - 10_000))

        report = await _cycle(chain, activity, store).run()

        assert report.swept is None
        assert store.get_block(1) is not None
