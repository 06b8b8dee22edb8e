"""
Wall Clock
==========

Injectable time source.

Everything time-dependent in the indexer (recent views, tip freshness,
retention sweeps) reads "now" through one clock so tests can pin it.
"""

from __future__ import annotations

from dataclasses import dataclass
from time import time as wall_time
from typing import Callable


@dataclass(frozen=True, slots=True)
class WallClock:
    """Reports the current time in whole epoch seconds."""

    time_fn: Callable[[], float] = wall_time
    """Time source function (injectable for testing)."""

    def now(self) -> int:
        """Get current wall-clock time (Unix timestamp in seconds)."""
        return int(self.time_fn())
