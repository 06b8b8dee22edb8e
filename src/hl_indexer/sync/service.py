"""
Sync service.

Runs sync cycles back to back with a pause in between. Cycles never
overlap: the loop awaits each cycle before sleeping, and manual triggers
(the refresh endpoint, the `index` command) go through the same lock.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from .config import DEFAULT_INTERVAL_SECONDS
from .cycle import CycleReport, SyncCycle

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncService:
    """Periodic, non-overlapping runner of sync cycles."""

    cycle: SyncCycle
    """The cycle to run."""

    interval: float = DEFAULT_INTERVAL_SECONDS
    """Pause between cycles in seconds."""

    last_report: CycleReport | None = field(default=None, init=False)
    """Report of the most recent cycle."""

    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)
    """Held while a cycle runs."""

    _wake: asyncio.Event = field(default_factory=asyncio.Event, init=False, repr=False)
    """Set to cut the pause short on stop."""

    _running: bool = field(default=False, init=False, repr=False)
    """Whether the service is running."""

    async def run(self) -> None:
        """
        Main loop: run a cycle, pause, repeat.

        The loop continues until the service is stopped.
        """
        self._running = True
        self._wake.clear()
        logger.info("Sync service started (interval %.1fs)", self.interval)

        while self._running:
            await self.run_once()
            if not self._running:
                break
            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self.interval)
            except TimeoutError:
                pass

        logger.info("Sync service stopped")

    async def run_once(self) -> CycleReport:
        """Run one cycle, waiting for any cycle in flight to finish first."""
        async with self._lock:
            report = await self.cycle.run()
            self.last_report = report
            return report

    async def trigger(self) -> CycleReport | None:
        """Run one cycle now unless one is already in flight."""
        if self._lock.locked():
            return None
        return await self.run_once()

    @property
    def is_syncing(self) -> bool:
        """Whether a cycle is in flight."""
        return self._lock.locked()

    def stop(self) -> None:
        """
        Stop the service.

        The loop exits after the cycle in flight, if any, completes.
        """
        self._running = False
        self._wake.set()

    @property
    def is_running(self) -> bool:
        """Check if the service is currently running."""
        return self._running
