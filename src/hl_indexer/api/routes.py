"""API route definitions."""

from aiohttp import web

from .endpoints import (
    blocks,
    health,
    markets,
    metrics,
    network,
    refresh,
    stats,
    transactions,
    websocket,
)

ROUTES: list[web.RouteDef] = [
    web.get("/api/health", health.handle),
    web.get("/api/stats", stats.handle),
    web.get("/api/blocks", blocks.handle_list),
    web.get("/api/blocks/latest", blocks.handle_latest),
    web.get("/api/transactions", transactions.handle_list),
    web.get("/api/transactions/{hash}", transactions.handle_by_hash),
    web.get("/api/validators", network.handle_validators),
    web.get("/api/vaults", network.handle_vaults),
    web.get("/api/transfers", network.handle_transfers),
    web.get("/api/markets", markets.handle_markets),
    web.get("/api/trades", markets.handle_trades),
    web.post("/api/refresh", refresh.handle),
    web.get("/metrics", metrics.handle),
    web.get("/ws", websocket.handle),
]
"""All API routes mapped to their handlers."""
