"""Market price snapshots and trades."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, NamedTuple

from pydantic import Field, model_validator

from hl_indexer.types import RecordModel, timestamp_millis


class TradeSide(StrEnum):
    """Aggressor side of a trade."""

    BUY = "buy"
    SELL = "sell"


class TradeKey(NamedTuple):
    """Composite natural key of a trade."""

    symbol: str
    time_ms: int
    tx_hash: str


class Trade(RecordModel):
    """A fill. Append-only: a trade already present is never rewritten."""

    symbol: str = Field(min_length=1)
    price: float
    size: float
    side: TradeSide
    tx_hash: str = ""

    time_ms: int = Field(default=0, ge=0)
    """
    Fill time in epoch milliseconds.

    Derived from the raw timestamp when not given. Fills sharing a hash
    within one second differ only here.
    """

    @model_validator(mode="before")
    @classmethod
    def _capture_time_ms(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "time_ms" in data or "timeMs" in data:
            return data
        raw = data.get("timestamp")
        if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
            return data
        try:
            return {**data, "time_ms": timestamp_millis(raw)}
        except ValueError:
            # Left to the timestamp validator to report.
            return data

    @property
    def key(self) -> TradeKey:
        """Composite natural key."""
        return TradeKey(self.symbol, self.time_ms or self.timestamp * 1000, self.tx_hash)


class MarketSnapshot(RecordModel):
    """Latest mid price of a market, keyed by symbol."""

    symbol: str = Field(min_length=1)
    price: float = 0.0
    volume_24h: float = Field(default=0.0, alias="volume24h")
    change_24h: float = Field(default=0.0, alias="change24h")
