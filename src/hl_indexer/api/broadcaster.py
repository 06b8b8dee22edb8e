"""
WebSocket broadcaster.

Once per tick, compares the newest records in the store against the
last-broadcast markers kept in ServerState and pushes what is new to every
connected client. Each message has the shape::

    {"type": "newBlocks" | "newTransactions" | "newValidators" | "newVaults"
             | "newTransfers" | "stats",
     "data": ..., "timestamp": "<ISO 8601>"}

Validators and vaults are pushed whole whenever their newest refresh time
advances. A stats message closes every tick. New clients are greeted with
a single "connected" message.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Final

from hl_indexer import metrics

from .params import encode, encode_all
from .state import ServerState

logger = logging.getLogger(__name__)

BROADCAST_INTERVAL: Final[float] = 1.0
"""Seconds between broadcast ticks."""

BLOCK_SCAN_LIMIT: Final[int] = 10
"""Newest blocks inspected per tick."""

TX_SCAN_LIMIT: Final[int] = 20
"""Newest transactions and transfers inspected per tick."""


def _message(kind: str, data: Any) -> dict[str, Any]:
    return {"type": kind, "data": data, "timestamp": datetime.now(UTC).isoformat()}


def connected_message() -> dict[str, Any]:
    """Greeting sent to a client right after it connects."""
    return _message("connected", {"message": "Connected to Hyperliquid indexer"})


@dataclass(slots=True)
class Broadcaster:
    """Pushes new records to WebSocket clients."""

    state: ServerState
    """Shared server state with clients and markers."""

    interval: float = BROADCAST_INTERVAL
    """Seconds between ticks."""

    _running: bool = field(default=False, init=False, repr=False)

    async def run(self) -> None:
        """Broadcast on every tick until stopped."""
        self._running = True
        while self._running:
            await asyncio.sleep(self.interval)
            if self.state.clients:
                await self.broadcast_once()

    def stop(self) -> None:
        """Stop after the current tick."""
        self._running = False

    def collect(self) -> list[dict[str, Any]]:
        """Build the messages for everything new since the last tick and advance the markers."""
        state = self.state
        store = state.store
        messages: list[dict[str, Any]] = []

        blocks = store.get_blocks(BLOCK_SCAN_LIMIT)
        last_block = state.last_broadcast_block_number
        new_blocks = [b for b in blocks if last_block is None or b.block_number > last_block]
        if new_blocks:
            state.last_broadcast_block_number = max(b.block_number for b in new_blocks)
            state.blocks_broadcast += len(new_blocks)
            messages.append(_message("newBlocks", encode_all(new_blocks)))

        transactions = store.get_transactions(TX_SCAN_LIMIT)
        new_transactions = _until(transactions, state.last_broadcast_tx_hash)
        if new_transactions:
            state.last_broadcast_tx_hash = new_transactions[0].hash
            state.transactions_broadcast += len(new_transactions)
            messages.append(_message("newTransactions", encode_all(new_transactions)))

        validators = store.get_validators()
        newest = _advanced(validators, state.last_broadcast_validator_time)
        if newest is not None:
            state.last_broadcast_validator_time = newest
            messages.append(_message("newValidators", encode_all(validators)))

        vaults = store.get_vaults()
        newest = _advanced(vaults, state.last_broadcast_vault_time)
        if newest is not None:
            state.last_broadcast_vault_time = newest
            messages.append(_message("newVaults", encode_all(vaults)))

        transfers = store.get_transfers(TX_SCAN_LIMIT)
        new_transfers = _until(transfers, state.last_broadcast_transfer_hash)
        if new_transfers:
            state.last_broadcast_transfer_hash = new_transfers[0].hash
            messages.append(_message("newTransfers", encode_all(new_transfers)))

        messages.append(_message("stats", encode(store.get_stats())))
        return messages

    async def broadcast_once(self) -> int:
        """
        Push new records to every open client.

        Returns:
            Number of messages sent per client.
        """
        messages = self.collect()

        for ws in list(self.state.clients):
            if ws.closed:
                self.state.clients.discard(ws)
                continue
            try:
                for message in messages:
                    await ws.send_json(message)
            except (ConnectionResetError, RuntimeError) as e:
                logger.debug("Dropping WebSocket client: %s", e)
                self.state.clients.discard(ws)

        metrics.websocket_clients.set(len(self.state.clients))
        return len(messages)


def _advanced(records: list[Any], marker: int | None) -> int | None:
    """Newest timestamp among the records if it is past the marker, else None."""
    newest = max((record.timestamp for record in records), default=None)
    if newest is None or (marker is not None and newest <= marker):
        return None
    return newest


def _until(records: list[Any], marker: str | None) -> list[Any]:
    """Leading records of a newest-first list up to (excluding) the marker hash."""
    if marker is None:
        return records
    fresh = []
    for record in records:
        if record.hash == marker:
            break
        fresh.append(record)
    return fresh
