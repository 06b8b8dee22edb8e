"""
Sync configuration constants.

Operational parameters for synchronization: batch sizes, probe bounds,
pacing delays, and timeouts.
"""

from __future__ import annotations

from typing import Final

MAX_BLOCKS_PER_CYCLE: Final[int] = 10
"""Widest block range indexed in one cycle."""

TIP_PROBE_LIMIT: Final[int] = 30
"""Maximum heights probed forward when looking for the tip."""

PROBE_DELAY: Final[float] = 0.05
"""Pause between tip probes in seconds."""

SAFE_FLOOR_HEIGHT: Final[int] = 822_890_000
"""Starting height when no trusted stored block exists."""

MIN_TRUSTED_HEIGHT: Final[int] = 822_800_000
"""Stored blocks below this height are never used as a starting point."""

MAX_BACKFILL_HEIGHTS: Final[int] = 50
"""Maximum block fetches spent on hash backfill in one cycle."""

BACKFILL_DELAY: Final[float] = 0.05
"""Pause between backfill fetches in seconds."""

BLOCK_FETCH_DELAY: Final[float] = 0.01
"""Pause between block range fetches in seconds."""

MAX_TRADE_MARKETS: Final[int] = 20
"""Markets whose recent trades are fetched per cycle."""

TRADE_FETCH_DELAY: Final[float] = 0.1
"""Pause between per-market trade fetches in seconds."""

SWEEP_PROBABILITY: Final[float] = 0.1
"""Chance that a cycle ends with a retention sweep."""

REQUEST_TIMEOUT: Final[float] = 5.0
"""Upper bound on any single upstream call in seconds."""

DEFAULT_INTERVAL_SECONDS: Final[float] = 10.0
"""Pause between the end of one cycle and the start of the next."""

WEI_PER_TOKEN: Final[float] = 1e18
"""Base units per token for stake and transfer amounts."""
