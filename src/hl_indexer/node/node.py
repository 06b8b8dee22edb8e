"""
Indexer node: the composition root.

Wires the store, persistence, upstream clients, sync engine and API into
one runnable unit and owns their lifecycle. All shared state is created
here and passed down explicitly.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from dataclasses import dataclass, field
from pathlib import Path

from hl_indexer import config as env
from hl_indexer.api import ApiServer, ApiServerConfig, Broadcaster, ServerState
from hl_indexer.chain import FreshnessWindow, WallClock
from hl_indexer.storage import SAVE_DELAY_SECONDS, Database, PersistenceWriter, open_database
from hl_indexer.store import IndexedStore, RetentionManager
from hl_indexer.sync import Reconciler, SyncCycle, SyncService, TipDiscovery
from hl_indexer.upstream import (
    ActivitySource,
    ChainSource,
    HyperliquidInfoClient,
    HypurrscanClient,
    UpstreamClient,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NodeConfig:
    """
    Complete configuration for an indexer node.

    Upstream sources default to the public API clients. Tests pass their
    own implementations of the ports instead.
    """

    database_path: Path | str = env.DATABASE_PATH
    """Snapshot location."""

    sync_interval: float = env.INDEX_INTERVAL_MS / 1000
    """Pause between sync cycles in seconds."""

    sync_enabled: bool = True
    """Whether the sync service runs."""

    api_config: ApiServerConfig | None = field(
        default_factory=lambda: ApiServerConfig(port=env.API_PORT)
    )
    """HTTP API configuration. None disables the API."""

    chain: ChainSource | None = None
    """Chain source. Defaults to the Hyperliquid info client."""

    activity: ActivitySource | None = None
    """Activity source. Defaults to the Hypurrscan client."""

    clock: WallClock = field(default_factory=WallClock)
    """Time source."""

    window: FreshnessWindow = field(default_factory=FreshnessWindow)
    """Freshness window for admission and recent views."""

    save_delay: float = SAVE_DELAY_SECONDS
    """Persistence debounce period in seconds."""


@dataclass(slots=True)
class Node:
    """
    The running indexer.

    Coordinates the sync service, the API server and the broadcaster, and
    flushes the store on shutdown.
    """

    config: NodeConfig
    database: Database
    store: IndexedStore
    writer: PersistenceWriter
    retention: RetentionManager
    sync_service: SyncService
    state: ServerState
    api_server: ApiServer | None = None
    broadcaster: Broadcaster | None = None

    owned_clients: list[UpstreamClient] = field(default_factory=list)
    """Clients created here and closed on shutdown."""

    _shutdown: asyncio.Event = field(default_factory=asyncio.Event)
    """Event signaling shutdown request."""

    @classmethod
    def from_config(cls, config: NodeConfig) -> Node:
        """
        Create a node from configuration.

        Loads the persisted snapshot, if any, before anything else runs.
        """
        database = open_database(config.database_path)

        store = IndexedStore(clock=config.clock, window=config.window)
        snapshot = database.load_snapshot()
        if snapshot is not None:
            store.load_snapshot(snapshot)

        writer = PersistenceWriter(database, store.snapshot, delay=config.save_delay)
        store.on_change = writer.mark_dirty
        retention = RetentionManager(store, writer)

        owned: list[UpstreamClient] = []
        chain = config.chain
        if chain is None:
            info_client = HyperliquidInfoClient()
            owned.append(info_client)
            chain = info_client
        activity = config.activity
        if activity is None:
            explorer_client = HypurrscanClient()
            owned.append(explorer_client)
            activity = explorer_client

        tip_discovery = TipDiscovery(source=chain, store=store, window=config.window)
        cycle = SyncCycle(
            chain=chain,
            activity=activity,
            store=store,
            reconciler=Reconciler(store),
            tip_discovery=tip_discovery,
            retention=retention,
        )
        sync_service = SyncService(cycle, interval=config.sync_interval)

        state = ServerState(
            store=store,
            retention=retention,
            sync_service=sync_service if config.sync_enabled else None,
        )

        api_server: ApiServer | None = None
        broadcaster: Broadcaster | None = None
        if config.api_config is not None:
            api_server = ApiServer(config=config.api_config, state=state)
            broadcaster = Broadcaster(state)

        return cls(
            config=config,
            database=database,
            store=store,
            writer=writer,
            retention=retention,
            sync_service=sync_service,
            state=state,
            api_server=api_server,
            broadcaster=broadcaster,
            owned_clients=owned,
        )

    async def run(self, *, install_signal_handlers: bool = True) -> None:
        """
        Run all services until shutdown.

        Args:
            install_signal_handlers: Whether to handle SIGINT/SIGTERM.
                Disable for testing or non-main threads.
        """
        if install_signal_handlers:
            self._install_signal_handlers()

        if self.api_server is not None:
            await self.api_server.start()

        try:
            async with asyncio.TaskGroup() as tg:
                if self.config.sync_enabled:
                    tg.create_task(self.sync_service.run())
                if self.api_server is not None:
                    tg.create_task(self.api_server.run())
                if self.broadcaster is not None:
                    tg.create_task(self.broadcaster.run())
                tg.create_task(self._wait_shutdown())
        finally:
            await self.close()

    async def close(self) -> None:
        """Flush the store and release every resource."""
        self.writer.close()
        self.database.close()
        for client in self.owned_clients:
            await client.aclose()

    def stop(self) -> None:
        """Request graceful shutdown."""
        self._shutdown.set()

    def _install_signal_handlers(self) -> None:
        """
        Install signal handlers for graceful shutdown.

        Handles SIGINT (Ctrl+C) and SIGTERM (process termination).
        """
        try:
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self._shutdown.set)
        except (ValueError, RuntimeError, NotImplementedError):
            # Cannot add handlers outside main thread or on this platform.
            pass

    async def _wait_shutdown(self) -> None:
        """Wait for shutdown signal then stop services."""
        await self._shutdown.wait()
        logger.info("Shutting down")

        self.sync_service.stop()
        if self.broadcaster is not None:
            self.broadcaster.stop()
        if self.api_server is not None:
            self.api_server.stop()
