"""Shared fixtures for hl_indexer tests."""

from __future__ import annotations

import pytest

from hl_indexer.chain import FreshnessWindow, WallClock
from hl_indexer.store import IndexedStore
from tests.hl_indexer.helpers import MutableTime


@pytest.fixture
def time_source() -> MutableTime:
    """Movable time source pinned at NOW."""
    return MutableTime()


@pytest.fixture
def clock(time_source: MutableTime) -> WallClock:
    """Clock reading the movable time source."""
    return WallClock(time_fn=time_source)


@pytest.fixture
def window() -> FreshnessWindow:
    """Default freshness window (2h lookback, 1h skew)."""
    return FreshnessWindow()


@pytest.fixture
def store(clock: WallClock, window: FreshnessWindow) -> IndexedStore:
    """Empty store on the pinned clock."""
    return IndexedStore(clock=clock, window=window)
