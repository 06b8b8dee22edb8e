"""
Upstream wire records.

Only the fields the indexer relies on are validated: hashes, heights,
timestamps, addresses, and the handful of numbers it extracts. Everything
else rides along untouched in `payload`, the raw object as received.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Self, TypeVar

from pydantic import Field, ValidationError

from hl_indexer.types import CamelModel

logger = logging.getLogger(__name__)

W = TypeVar("W", bound="WireModel")


class WireModel(CamelModel):
    """A validated view over a raw upstream object."""

    payload: dict[str, Any] = Field(default_factory=dict, exclude=True)
    """The raw object as received."""

    @classmethod
    def from_wire(cls, item: Any) -> Self:
        """
        Validate a raw object and keep it as payload.

        Raises:
            ValidationError: If a core field is missing or malformed.
        """
        record = cls.model_validate(item)
        return record.model_copy(update={"payload": item})


def parse_records(model: type[W], items: Iterable[Any], label: str) -> list[W]:
    """Validate each item, skipping the malformed ones."""
    records: list[W] = []
    skipped = 0
    for item in items:
        try:
            records.append(model.from_wire(item))
        except ValidationError as e:
            skipped += 1
            logger.debug("Skipping malformed %s record: %s", label, e)
    if skipped:
        logger.info("Skipped %d malformed %s records", skipped, label)
    return records


class ActivityRecord(WireModel):
    """A transaction as reported by the activity feed or inside a block."""

    hash: str = Field(min_length=1)
    block: int = Field(default=0, ge=0)
    time: int = Field(ge=0)
    """Epoch milliseconds."""

    user: str = ""
    action: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None

    @property
    def action_type(self) -> str:
        """Type tag of the carried action."""
        action_type = self.action.get("type")
        return action_type if isinstance(action_type, str) and action_type else "unknown"


class BlockDetails(WireModel):
    """A block with its transactions, as returned by the explorer endpoint."""

    height: int = Field(ge=0)
    block_time: int = Field(ge=0)
    """Epoch milliseconds."""

    hash: str = ""
    proposer: str = ""
    num_txs: int = Field(default=0, ge=0)
    txs: list[Any] = Field(default_factory=list)
    """Raw transactions; parse with `transactions()`."""

    def transactions(self) -> list[ActivityRecord]:
        """Validated transactions of the block, malformed ones skipped."""
        return parse_records(ActivityRecord, self.txs, "block transaction")

    def header_payload(self) -> dict[str, Any]:
        """The raw block object without its transaction list."""
        return {key: value for key, value in self.payload.items() if key != "txs"}


class MarketDescriptor(WireModel):
    """One entry of the perpetuals universe."""

    name: str = Field(min_length=1)
    sz_decimals: int = 0
    is_delisted: bool = False


class TradeRecord(WireModel):
    """A recent fill."""

    coin: str = Field(min_length=1)
    side: str
    """Aggressor side: "B" for buy, "A" for sell."""

    px: float
    sz: float
    time: int = Field(ge=0)
    hash: str = ""
    tid: int = 0


class ValidatorSummary(WireModel):
    """A validator summary row."""

    validator: str = Field(min_length=1)
    stake: float = 0.0
    """Stake in base units (1e18 per token)."""

    is_jailed: bool = False
    is_active: bool = False
    stats: list[Any] = Field(default_factory=list)
    """Pairs of `[period, {"uptimeFraction": ..., ...}]`."""

    def uptime_fraction(self, period: str = "day") -> float:
        """Uptime fraction reported for a period, 0.0 if absent."""
        for entry in self.stats:
            if isinstance(entry, list) and len(entry) == 2 and entry[0] == period:
                values = entry[1]
                if isinstance(values, dict):
                    try:
                        return float(values.get("uptimeFraction", 0.0))
                    except (TypeError, ValueError):
                        return 0.0
        return 0.0


class VaultSummary(WireModel):
    """A vault summary row."""

    vault_address: str = Field(min_length=1)
    name: str = ""
    equity: float = 0.0
    total_deposits: float = 0.0
    total_withdrawals: float = 0.0
