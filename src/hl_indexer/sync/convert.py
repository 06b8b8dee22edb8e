"""Conversion of upstream wire records into store records."""

from __future__ import annotations

import json
from typing import Any

from hl_indexer.records import (
    Block,
    MarketSnapshot,
    Trade,
    TradeSide,
    Transaction,
    Transfer,
    Validator,
    ValidatorStatus,
    Vault,
)
from hl_indexer.upstream import (
    ActivityRecord,
    BlockDetails,
    MarketDescriptor,
    TradeRecord,
    ValidatorSummary,
    VaultSummary,
)

from .config import WEI_PER_TOKEN


def _dump(payload: Any) -> str:
    return json.dumps(payload, separators=(",", ":"), default=str)


def _number(value: Any, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"{field} is not numeric: {value!r}")
    return float(value)


def block_from_details(details: BlockDetails) -> Block:
    """Block header of a fetched block."""
    return Block(
        block_number=details.height,
        block_hash=details.hash,
        timestamp=details.block_time,
        tx_count=details.num_txs or len(details.txs),
        proposer=details.proposer,
        data=_dump(details.header_payload()),
    )


def transaction_from_activity(
    record: ActivityRecord, block_hash: str = "", block_number: int | None = None
) -> Transaction:
    """Transaction from an activity or in-block record."""
    return Transaction(
        hash=record.hash,
        block_number=record.block if block_number is None else block_number,
        block_hash=block_hash,
        timestamp=record.time,
        user=record.user,
        action_type=record.action_type,
        action_data=_dump(record.action),
        error=record.error,
        data=_dump(record.payload),
    )


def transfer_from_activity(record: ActivityRecord) -> Transfer:
    """
    Transfer from a transfers-feed record.

    The amount is taken from `action.amount` when present, otherwise from
    `action.wei` scaled down to whole tokens.

    Raises:
        ValueError: If the amount is not numeric.
    """
    action = record.action
    if action.get("amount") is not None:
        amount = _number(action["amount"], "amount")
    elif action.get("wei") is not None:
        amount = _number(action["wei"], "wei") / WEI_PER_TOKEN
    else:
        amount = 0.0

    return Transfer(
        hash=record.hash,
        block_number=record.block,
        timestamp=record.time,
        sender=record.user,
        recipient=str(action.get("destination", "")),
        token=str(action.get("token", "")),
        amount=amount,
        data=_dump(record.payload),
    )


def validator_from_summary(summary: ValidatorSummary, now: int) -> Validator:
    """Validator from a summary row, stamped with the fetch time."""
    if summary.is_jailed:
        status = ValidatorStatus.JAILED
    elif summary.is_active:
        status = ValidatorStatus.ACTIVE
    else:
        status = ValidatorStatus.INACTIVE

    uptime = min(max(summary.uptime_fraction("day") * 100, 0.0), 100.0)
    return Validator(
        address=summary.validator,
        voting_power=summary.stake / WEI_PER_TOKEN,
        status=status,
        uptime=uptime,
        timestamp=now,
        data=_dump(summary.payload),
    )


def vault_from_summary(summary: VaultSummary, now: int) -> Vault:
    """Vault from a summary row, stamped with the fetch time."""
    return Vault(
        address=summary.vault_address,
        name=summary.name,
        equity=summary.equity,
        total_deposits=summary.total_deposits,
        total_withdrawals=summary.total_withdrawals,
        timestamp=now,
        data=_dump(summary.payload),
    )


def trade_from_record(record: TradeRecord) -> Trade:
    """Trade from a recent-trades row."""
    return Trade(
        symbol=record.coin,
        price=record.px,
        size=record.sz,
        side=TradeSide.BUY if record.side == "B" else TradeSide.SELL,
        timestamp=record.time,
        tx_hash=record.hash,
    )


def market_from_descriptor(descriptor: MarketDescriptor, price: float, now: int) -> MarketSnapshot:
    """Market snapshot at the current mid price."""
    return MarketSnapshot(symbol=descriptor.name, price=price, timestamp=now)
