"""
Sync cycle.

One cycle pulls everything the indexer tracks, in a fixed order:

1. Recent activity: store feed transactions, attaching block hashes
   already known, and note heights whose block is missing.
2. Backfill: fetch those blocks and fill in the missing hashes.
3. Block range: discover the tip and index the blocks between the last
   stored height and the tip, at most a fixed number per cycle.
4. Markets, trades, validators, vaults, transfers.
5. Occasionally, a retention sweep.

Every stage is isolated: a failure is logged and counted, and the next
stage runs. Every upstream call is bounded by a timeout and every loop
over heights or markets by a fixed cap, so a cycle always finishes.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

from pydantic import ValidationError

from hl_indexer import metrics
from hl_indexer.store import IndexedStore, RetentionManager
from hl_indexer.store.config import DEFAULT_RETENTION_SECONDS
from hl_indexer.upstream import (
    ActivitySource,
    ChainSource,
    HeightStatus,
    MarketDescriptor,
    UpstreamUnavailableError,
)

from .config import (
    BACKFILL_DELAY,
    BLOCK_FETCH_DELAY,
    MAX_BACKFILL_HEIGHTS,
    MAX_BLOCKS_PER_CYCLE,
    MAX_TRADE_MARKETS,
    REQUEST_TIMEOUT,
    SWEEP_PROBABILITY,
    TRADE_FETCH_DELAY,
)
from .convert import (
    market_from_descriptor,
    trade_from_record,
    transfer_from_activity,
    validator_from_summary,
    vault_from_summary,
)
from .reconciler import Reconciler
from .tip_discovery import TipDiscovery

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class CycleReport:
    """What one cycle did."""

    activity_ingested: int = 0
    blocks_backfilled: int = 0
    frontier: int | None = None
    blocks_indexed: int = 0
    markets_updated: int = 0
    trades_ingested: int = 0
    validators_updated: int = 0
    vaults_updated: int = 0
    transfers_ingested: int = 0
    swept: dict[str, int] | None = None
    """Eviction counts if a sweep ran."""

    failed_stages: list[str] = field(default_factory=list)
    """Stages that raised, in order."""

    duration: float = 0.0
    """Wall time of the cycle in seconds."""

    @property
    def ok(self) -> bool:
        """Whether every stage completed."""
        return not self.failed_stages


@dataclass(slots=True)
class SyncCycle:
    """A single pass over every upstream feed."""

    chain: ChainSource
    activity: ActivitySource
    store: IndexedStore
    reconciler: Reconciler
    tip_discovery: TipDiscovery
    retention: RetentionManager

    rng: Callable[[], float] = random.random
    """Random source deciding whether to sweep (injectable for testing)."""

    batch_width: int = MAX_BLOCKS_PER_CYCLE
    max_backfill: int = MAX_BACKFILL_HEIGHTS
    max_trade_markets: int = MAX_TRADE_MARKETS
    sweep_probability: float = SWEEP_PROBABILITY
    retention_age: int = DEFAULT_RETENTION_SECONDS
    request_timeout: float = REQUEST_TIMEOUT
    block_delay: float = BLOCK_FETCH_DELAY
    backfill_delay: float = BACKFILL_DELAY
    trade_delay: float = TRADE_FETCH_DELAY

    async def run(self) -> CycleReport:
        """
        Run every stage once.

        Never raises on stage failures; they are recorded in the report.
        """
        started = time.monotonic()
        report = CycleReport()

        needs_fetch = await self._stage(report, "activity", self._ingest_activity(report))
        if needs_fetch:
            await self._stage(report, "backfill", self._backfill(needs_fetch, report))
        await self._stage(report, "blocks", self._index_blocks(report))
        markets = await self._stage(report, "markets", self._refresh_markets(report))
        await self._stage(report, "trades", self._ingest_trades(markets, report))
        await self._stage(report, "validators", self._refresh_validators(report))
        await self._stage(report, "vaults", self._refresh_vaults(report))
        await self._stage(report, "transfers", self._ingest_transfers(report))
        await self._stage(report, "retention", self._maybe_sweep(report))

        report.duration = time.monotonic() - started
        metrics.sync_cycles.inc()
        metrics.sync_cycle_time.observe(report.duration)
        for entity, count in self.store.counts().items():
            metrics.store_records.labels(entity=entity).set(count)

        logger.info(
            "Sync cycle done in %.2fs: activity=%d backfilled=%d blocks=%d frontier=%s%s",
            report.duration,
            report.activity_ingested,
            report.blocks_backfilled,
            report.blocks_indexed,
            report.frontier,
            f" failed={','.join(report.failed_stages)}" if report.failed_stages else "",
        )
        return report

    async def _stage(self, report: CycleReport, name: str, work: Awaitable[T]) -> T | None:
        """Await one stage, recording instead of raising its failure."""
        try:
            return await work
        except Exception as e:
            report.failed_stages.append(name)
            metrics.sync_stage_failures.labels(stage=name).inc()
            logger.warning("Sync stage %s failed: %s", name, str(e) or type(e).__name__)
            return None

    async def _fetch(self, call: Awaitable[T]) -> T:
        return await asyncio.wait_for(call, timeout=self.request_timeout)

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    async def _ingest_activity(self, report: CycleReport) -> set[int]:
        records = await self._fetch(self.activity.fetch_recent_activity())
        report.activity_ingested = len(records)
        return self.reconciler.ingest_activity(records)

    async def _backfill(self, heights: set[int], report: CycleReport) -> None:
        # Newest heights first: their transactions are the ones being served.
        for index, height in enumerate(sorted(heights, reverse=True)[: self.max_backfill]):
            stored = self.store.get_block(height)
            if stored is not None and stored.block_hash:
                self.reconciler.backfill_height(stored)
                continue

            if index and self.backfill_delay > 0:
                await asyncio.sleep(self.backfill_delay)

            try:
                outcome = await self._fetch(self.chain.fetch_block(height))
            except (TimeoutError, UpstreamUnavailableError) as e:
                logger.debug("Backfill stopped at height %d: %s", height, str(e) or "timeout")
                break

            if isinstance(outcome, HeightStatus):
                continue

            try:
                self.reconciler.apply_block(outcome)
            except (ValidationError, ValueError, TypeError) as e:
                logger.debug("Skipping malformed block %d: %s", height, e)
                continue
            report.blocks_backfilled += 1

    async def _index_blocks(self, report: CycleReport) -> None:
        frontier = await self.tip_discovery.discover()
        report.frontier = frontier

        highest = self.store.get_highest_block()
        if highest is not None and self.tip_discovery.is_trusted(highest):
            start = highest.block_number + 1
        else:
            start = frontier - self.batch_width + 1
        end = min(frontier, start + self.batch_width - 1)

        window = self.tip_discovery.window
        for height in range(start, end + 1):
            if height > start and self.block_delay > 0:
                await asyncio.sleep(self.block_delay)

            try:
                outcome = await self._fetch(self.chain.fetch_block(height))
            except (TimeoutError, UpstreamUnavailableError) as e:
                logger.debug("Block range stopped at height %d: %s", height, str(e) or "timeout")
                break

            if isinstance(outcome, HeightStatus):
                continue
            if not window.admits(outcome.block_time, self.store.clock.now()):
                logger.debug("Rejecting block %d: outside freshness window", height)
                continue

            try:
                self.reconciler.ingest_block(outcome)
            except (ValidationError, ValueError, TypeError) as e:
                logger.debug("Skipping malformed block %d: %s", height, e)
                continue
            report.blocks_indexed += 1

    async def _refresh_markets(self, report: CycleReport) -> list[MarketDescriptor]:
        meta = await self._fetch(self.chain.fetch_market_meta())
        mids = await self._fetch(self.chain.fetch_mid_prices())

        now = self.store.clock.now()
        active = [market for market in meta if not market.is_delisted]
        for market in active:
            try:
                snapshot = market_from_descriptor(market, mids.get(market.name, 0.0), now)
            except (ValidationError, ValueError, TypeError) as e:
                logger.debug("Skipping market %s: %s", market.name, e)
                continue
            self.store.upsert_market(snapshot)
            report.markets_updated += 1
        return active

    async def _ingest_trades(
        self, markets: list[MarketDescriptor] | None, report: CycleReport
    ) -> None:
        if markets is None:
            meta = await self._fetch(self.chain.fetch_market_meta())
            markets = [market for market in meta if not market.is_delisted]

        for index, market in enumerate(markets[: self.max_trade_markets]):
            if index and self.trade_delay > 0:
                await asyncio.sleep(self.trade_delay)

            try:
                trades = await self._fetch(self.chain.fetch_recent_trades(market.name))
            except (TimeoutError, UpstreamUnavailableError) as e:
                logger.debug("Skipping trades of %s: %s", market.name, str(e) or "timeout")
                continue

            for record in trades:
                try:
                    self.store.upsert_trade(trade_from_record(record))
                except (ValidationError, ValueError, TypeError) as e:
                    logger.debug("Skipping trade of %s: %s", market.name, e)
                    continue
                report.trades_ingested += 1

    async def _refresh_validators(self, report: CycleReport) -> None:
        summaries = await self._fetch(self.chain.fetch_validators())
        now = self.store.clock.now()
        for summary in summaries:
            try:
                self.store.upsert_validator(validator_from_summary(summary, now))
            except (ValidationError, ValueError, TypeError) as e:
                logger.debug("Skipping validator %s: %s", summary.validator, e)
                continue
            report.validators_updated += 1

    async def _refresh_vaults(self, report: CycleReport) -> None:
        summaries = await self._fetch(self.chain.fetch_vaults())
        now = self.store.clock.now()
        for summary in summaries:
            try:
                self.store.upsert_vault(vault_from_summary(summary, now))
            except (ValidationError, ValueError, TypeError) as e:
                logger.debug("Skipping vault %s: %s", summary.vault_address, e)
                continue
            report.vaults_updated += 1

    async def _ingest_transfers(self, report: CycleReport) -> None:
        records = await self._fetch(self.activity.fetch_transfers())
        for record in records:
            try:
                self.store.upsert_transfer(transfer_from_activity(record))
            except (ValidationError, ValueError, TypeError) as e:
                logger.debug("Skipping transfer %s: %s", record.hash, e)
                continue
            report.transfers_ingested += 1

    async def _maybe_sweep(self, report: CycleReport) -> None:
        if self.rng() < self.sweep_probability:
            report.swept = self.retention.sweep(self.retention_age)
