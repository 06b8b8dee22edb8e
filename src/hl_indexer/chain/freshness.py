"""
Freshness window.

A single window definition decides three things:

- whether a probed block is admitted during tip discovery and range sync,
- whether a record belongs to a recent view,
- whether the highest stored block is trusted as a starting point.

The first two use the same bounds. The third is stricter: the stored tip
must not be in the future at all.
"""

from __future__ import annotations

from dataclasses import dataclass

from hl_indexer.types import normalize_timestamp

from .config import FUTURE_SKEW_SECONDS, LOOKBACK_SECONDS


@dataclass(frozen=True, slots=True)
class FreshnessWindow:
    """Bounds on record age relative to now."""

    lookback_seconds: int = LOOKBACK_SECONDS
    """Maximum age still considered recent."""

    future_skew_seconds: int = FUTURE_SKEW_SECONDS
    """Maximum distance into the future still tolerated."""

    def age(self, timestamp: int | float, now: int) -> int:
        """Age in seconds of a (possibly millisecond) timestamp."""
        return now - normalize_timestamp(timestamp)

    def admits(self, timestamp: int | float, now: int) -> bool:
        """Whether a timestamp lies in `[now - lookback, now + skew]`."""
        age = self.age(timestamp, now)
        return -self.future_skew_seconds <= age <= self.lookback_seconds

    def is_fresh(self, timestamp: int | float, now: int) -> bool:
        """Whether a timestamp is in the past and younger than the lookback."""
        age = self.age(timestamp, now)
        return 0 <= age < self.lookback_seconds

    def lower_bound(self, now: int) -> int:
        """Oldest admitted timestamp."""
        return now - self.lookback_seconds

    def upper_bound(self, now: int) -> int:
        """Newest admitted timestamp."""
        return now + self.future_skew_seconds
