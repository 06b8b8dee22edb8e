"""Wall clock and the freshness window shared by ingestion and recent views."""

from .clock import WallClock
from .config import FUTURE_SKEW_SECONDS, LOOKBACK_SECONDS
from .freshness import FreshnessWindow

__all__ = [
    "FUTURE_SKEW_SECONDS",
    "FreshnessWindow",
    "LOOKBACK_SECONDS",
    "WallClock",
]
