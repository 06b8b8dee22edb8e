"""
API server for queries over the indexed store.

Provides HTTP endpoints for:
- /api/health, /api/stats - Liveness and summary counters
- /api/blocks, /api/transactions, ... - Point and range queries
- /api/refresh - Run one sync cycle on demand
- /metrics - Prometheus metrics endpoint
- /ws - WebSocket feed of newly indexed records
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from aiohttp import WSCloseCode, web

from .app_keys import STATE_KEY
from .routes import ROUTES
from .state import ServerState

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApiServerConfig:
    """Configuration for the API server."""

    host: str = "0.0.0.0"
    """Host address to bind to."""

    port: int = 3000
    """Port to listen on."""

    enabled: bool = True
    """Whether the API server is enabled."""


async def _close_clients(app: web.Application) -> None:
    """Close open WebSocket connections on shutdown."""
    state = app[STATE_KEY]
    for ws in list(state.clients):
        await ws.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")
    state.clients.clear()


def create_app(state: ServerState) -> web.Application:
    """Build the aiohttp application serving a state."""
    app = web.Application()
    app[STATE_KEY] = state
    app.add_routes(ROUTES)
    app.on_shutdown.append(_close_clients)
    return app


@dataclass(slots=True)
class ApiServer:
    """
    HTTP API server over the indexed store.

    Uses aiohttp to handle HTTP protocol details efficiently.
    """

    config: ApiServerConfig
    """Server configuration."""

    state: ServerState
    """State served by the handlers."""

    _runner: web.AppRunner | None = field(default=None, init=False)
    """The aiohttp application runner."""

    _site: web.TCPSite | None = field(default=None, init=False)
    """The TCP site for the server."""

    async def start(self) -> None:
        """Start the API server in the background."""
        if not self.config.enabled:
            logger.info("API server is disabled")
            return

        self._runner = web.AppRunner(create_app(self.state))
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.config.host, self.config.port)
        await self._site.start()

        logger.info("API server listening on %s:%d", self.config.host, self.config.port)

    async def run(self) -> None:
        """
        Run the API server until shutdown.

        This method blocks until stop() is called.
        """
        if self._runner is None:
            await self.start()

        # Keep running until stopped
        while self._runner is not None:
            await asyncio.sleep(1)

    def stop(self) -> None:
        """Request graceful shutdown."""
        if self._runner is not None:
            asyncio.create_task(self._async_stop())

    async def _async_stop(self) -> None:
        """Gracefully stop the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("API server stopped")
