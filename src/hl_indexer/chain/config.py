"""
Time window constants.

The chain is only useful to this indexer near its tip. These bounds decide
what counts as "near".
"""

from __future__ import annotations

from typing import Final

LOOKBACK_SECONDS: Final[int] = 2 * 60 * 60
"""Records older than this are outside the recent window."""

FUTURE_SKEW_SECONDS: Final[int] = 60 * 60
"""Records up to this far in the future are still admitted (clock skew)."""
