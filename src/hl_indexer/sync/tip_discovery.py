"""
Tip discovery.

The chain source can fetch any height but cannot say which height is the
latest. The tip is found by probing forward from a trusted starting point
until the source runs out of blocks.

Starting point
--------------
The highest stored block is trusted when it is recent (younger than the
lookback, not in the future) and not below a minimum sane height.
Otherwise probing starts from a configured safe floor.

Probing
-------
Heights `start+1 .. start+K` are fetched one at a time with a short pause
between them. Probing stops at the first height that:

- is not produced yet (unavailable),
- is no longer served (archived),
- carries a timestamp outside the freshness window,
- fails or times out.

The last accepted height is the frontier. A failed probe never raises:
the best known frontier is returned instead.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from hl_indexer import metrics
from hl_indexer.chain import FreshnessWindow
from hl_indexer.records import Block
from hl_indexer.store import IndexedStore
from hl_indexer.upstream import ChainSource, HeightStatus, UpstreamUnavailableError

from .config import (
    MIN_TRUSTED_HEIGHT,
    PROBE_DELAY,
    REQUEST_TIMEOUT,
    SAFE_FLOOR_HEIGHT,
    TIP_PROBE_LIMIT,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TipDiscovery:
    """Finds the highest fetchable, fresh block height."""

    source: ChainSource
    """Height-addressed chain source."""

    store: IndexedStore
    """Store holding previously indexed blocks."""

    window: FreshnessWindow = field(default_factory=FreshnessWindow)
    """Admission window for probed blocks."""

    probe_limit: int = TIP_PROBE_LIMIT
    """Maximum heights probed per discovery."""

    probe_delay: float = PROBE_DELAY
    """Pause between probes in seconds."""

    safe_floor: int = SAFE_FLOOR_HEIGHT
    """Starting point when no stored block is trusted."""

    min_trusted_height: int = MIN_TRUSTED_HEIGHT
    """Lowest height accepted as a starting point."""

    request_timeout: float = REQUEST_TIMEOUT
    """Timeout per probe in seconds."""

    def is_trusted(self, block: Block) -> bool:
        """Whether a stored block is recent and high enough to start from."""
        return block.block_number >= self.min_trusted_height and self.window.is_fresh(
            block.timestamp, self.store.clock.now()
        )

    def resolve_start(self) -> int:
        """Height to probe forward from."""
        highest = self.store.get_highest_block()
        if highest is not None and self.is_trusted(highest):
            return highest.block_number
        return self.safe_floor

    async def probe_forward(self, start_from: int) -> int:
        """
        Probe successive heights after `start_from`.

        Returns:
            The last accepted height, or `start_from` if none was accepted.
        """
        frontier = start_from
        for height in range(start_from + 1, start_from + self.probe_limit + 1):
            if height > start_from + 1 and self.probe_delay > 0:
                await asyncio.sleep(self.probe_delay)

            try:
                outcome = await asyncio.wait_for(
                    self.source.fetch_block(height), timeout=self.request_timeout
                )
            except (TimeoutError, UpstreamUnavailableError) as e:
                logger.debug("Tip probe at %d failed: %s", height, str(e) or "timeout")
                break
            except Exception as e:
                logger.warning("Unexpected error probing height %d: %s", height, e)
                break

            if isinstance(outcome, HeightStatus):
                logger.debug("Tip probe stopped at %d: %s", height, outcome.value)
                break

            if not self.window.admits(outcome.block_time, self.store.clock.now()):
                logger.debug("Tip probe stopped at %d: block outside freshness window", height)
                break

            frontier = height

        return frontier

    async def discover(self) -> int:
        """Resolve a starting point and probe forward from it."""
        start = self.resolve_start()
        frontier = await self.probe_forward(start)
        metrics.tip_height.set(frontier)
        logger.debug("Tip discovery: start=%d frontier=%d", start, frontier)
        return frontier
