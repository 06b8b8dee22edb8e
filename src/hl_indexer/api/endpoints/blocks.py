"""Block endpoint handlers."""

from __future__ import annotations

from aiohttp import web

from hl_indexer.store.config import DEFAULT_BLOCK_LIMIT

from ..app_keys import get_state
from ..params import encode, encode_all, json_response, parse_limit


async def handle_list(request: web.Request) -> web.Response:
    """
    Handle recent blocks request.

    Query: `limit` (default 50).

    Response: JSON array of blocks, newest first.
    """
    limit = parse_limit(request, DEFAULT_BLOCK_LIMIT)
    return json_response(encode_all(get_state(request).store.get_blocks(limit)))


async def handle_latest(request: web.Request) -> web.Response:
    """
    Handle latest block request.

    Status Codes:
        200 OK: Block returned.
        404 Not Found: No block indexed yet.
    """
    block = get_state(request).store.get_latest_block()
    if block is None:
        raise web.HTTPNotFound(reason="No blocks indexed")
    return json_response(encode(block))
