"""
Server state.

Everything the API layer needs lives here, owned by the composition root
and handed to the server explicitly. Nothing is kept in module globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from hl_indexer.store import IndexedStore, RetentionManager

if TYPE_CHECKING:
    from aiohttp import web

    from hl_indexer.sync import SyncService


@dataclass(slots=True)
class ServerState:
    """Shared state of the running server."""

    store: IndexedStore
    """The record store."""

    retention: RetentionManager
    """Retention over the store."""

    sync_service: SyncService | None = None
    """Scheduler, if syncing is enabled."""

    clients: set[web.WebSocketResponse] = field(default_factory=set)
    """Connected WebSocket clients."""

    last_broadcast_block_number: int | None = None
    """Newest block number already pushed to clients."""

    last_broadcast_tx_hash: str | None = None
    """Newest transaction hash already pushed to clients."""

    last_broadcast_transfer_hash: str | None = None
    """Newest transfer hash already pushed to clients."""

    last_broadcast_validator_time: int | None = None
    """Newest validator refresh time already pushed to clients."""

    last_broadcast_vault_time: int | None = None
    """Newest vault refresh time already pushed to clients."""

    blocks_broadcast: int = 0
    """Blocks pushed to clients since start."""

    transactions_broadcast: int = 0
    """Transactions pushed to clients since start."""
