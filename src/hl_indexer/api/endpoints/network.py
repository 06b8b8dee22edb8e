"""Validator, vault and transfer endpoint handlers."""

from __future__ import annotations

from aiohttp import web

from hl_indexer.store.config import DEFAULT_QUERY_LIMIT

from ..app_keys import get_state
from ..params import encode_all, json_response, parse_limit


async def handle_validators(request: web.Request) -> web.Response:
    """Most recently updated validators."""
    limit = parse_limit(request, DEFAULT_QUERY_LIMIT)
    return json_response(encode_all(get_state(request).store.get_validators(limit)))


async def handle_vaults(request: web.Request) -> web.Response:
    """Most recently updated vaults."""
    limit = parse_limit(request, DEFAULT_QUERY_LIMIT)
    return json_response(encode_all(get_state(request).store.get_vaults(limit)))


async def handle_transfers(request: web.Request) -> web.Response:
    """Most recent transfers."""
    limit = parse_limit(request, DEFAULT_QUERY_LIMIT)
    return json_response(encode_all(get_state(request).store.get_transfers(limit)))
