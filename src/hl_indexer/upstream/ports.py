"""
Upstream ports.

The indexer reads from two independent sources:

- a chain source, addressed by block height, with no "latest height" call,
- an activity source, returning a recent window of transactions.

Both are unreliable and rate limited. Transient failures surface as
`UpstreamUnavailableError`. Running off either end of the chain is not a
failure: `fetch_block` reports it with a `HeightStatus` value.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from .types import (
    ActivityRecord,
    BlockDetails,
    MarketDescriptor,
    TradeRecord,
    ValidatorSummary,
    VaultSummary,
)


class HeightStatus(Enum):
    """Why a height has no block to return."""

    UNAVAILABLE = "unavailable"
    """Not produced yet (or not served)."""

    ARCHIVED = "archived"
    """Too old; moved out of the serving window."""


class UpstreamUnavailableError(Exception):
    """
    Transient upstream failure.

    Covers timeouts, connection errors, and server errors. Callers treat
    it as "no data this time" and move on.
    """

    def __init__(self, endpoint: str, reason: str) -> None:
        super().__init__(f"{endpoint}: {reason}")
        self.endpoint = endpoint
        self.reason = reason


class RateLimitedError(UpstreamUnavailableError):
    """The upstream answered HTTP 429."""

    def __init__(self, endpoint: str) -> None:
        super().__init__(endpoint, "rate limited")


class ChainSource(Protocol):
    """Height-addressed chain data and market/network summaries."""

    async def fetch_block(self, height: int) -> BlockDetails | HeightStatus:
        """Fetch a block with its transactions, or report why there is none."""
        ...

    async def fetch_market_meta(self) -> list[MarketDescriptor]:
        """List the perpetual markets."""
        ...

    async def fetch_mid_prices(self) -> dict[str, float]:
        """Current mid price per symbol."""
        ...

    async def fetch_recent_trades(self, symbol: str) -> list[TradeRecord]:
        """Recent fills of one market."""
        ...

    async def fetch_validators(self) -> list[ValidatorSummary]:
        """Validator summaries."""
        ...

    async def fetch_vaults(self) -> list[VaultSummary]:
        """Vault summaries."""
        ...


class ActivitySource(Protocol):
    """Recent transaction activity without block hashes."""

    async def fetch_recent_activity(self) -> list[ActivityRecord]:
        """Recent transactions, deduplicated by hash."""
        ...

    async def fetch_transfers(self) -> list[ActivityRecord]:
        """Recent token transfers."""
        ...
