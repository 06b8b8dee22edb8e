"""WebSocket endpoint handler."""

from __future__ import annotations

import logging

from aiohttp import WSMsgType, web

from hl_indexer import metrics

from ..app_keys import get_state
from ..broadcaster import connected_message

logger = logging.getLogger(__name__)


async def handle(request: web.Request) -> web.WebSocketResponse:
    """
    Accept a WebSocket client and keep it registered until it disconnects.

    The client is greeted once, then only receives broadcasts; incoming
    messages are ignored.
    """
    state = get_state(request)
    ws = web.WebSocketResponse(heartbeat=30.0)
    await ws.prepare(request)
    await ws.send_json(connected_message())

    state.clients.add(ws)
    metrics.websocket_clients.set(len(state.clients))
    logger.debug("WebSocket client connected (%d total)", len(state.clients))

    try:
        async for message in ws:
            if message.type == WSMsgType.ERROR:
                logger.debug("WebSocket client error: %s", ws.exception())
    finally:
        state.clients.discard(ws)
        metrics.websocket_clients.set(len(state.clients))
        logger.debug("WebSocket client disconnected (%d total)", len(state.clients))

    return ws
