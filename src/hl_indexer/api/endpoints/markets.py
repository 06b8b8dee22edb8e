"""Market and trade endpoint handlers."""

from __future__ import annotations

from aiohttp import web

from hl_indexer.store.config import DEFAULT_QUERY_LIMIT

from ..app_keys import get_state
from ..params import encode_all, json_response, parse_limit


async def handle_markets(request: web.Request) -> web.Response:
    """Latest market snapshots. Query: optional `symbol`."""
    symbol = request.query.get("symbol") or None
    return json_response(encode_all(get_state(request).store.get_latest_market_data(symbol)))


async def handle_trades(request: web.Request) -> web.Response:
    """Recent trades. Query: optional `symbol`, `limit` (default 100)."""
    symbol = request.query.get("symbol") or None
    limit = parse_limit(request, DEFAULT_QUERY_LIMIT)
    return json_response(encode_all(get_state(request).store.get_recent_trades(symbol, limit)))
