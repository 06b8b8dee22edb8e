"""Transaction endpoint handlers."""

from __future__ import annotations

from aiohttp import web

from hl_indexer.store.config import DEFAULT_QUERY_LIMIT

from ..app_keys import get_state
from ..params import encode, encode_all, json_response, parse_limit


async def handle_list(request: web.Request) -> web.Response:
    """
    Handle transactions request.

    Query:
        - limit: page size (default 100).
        - user: only transactions sent by this address (case-insensitive).
        - type: only transactions with this action type.

    `user` takes precedence over `type` when both are given.
    """
    store = get_state(request).store
    limit = parse_limit(request, DEFAULT_QUERY_LIMIT)

    user = request.query.get("user")
    action_type = request.query.get("type")
    if user:
        transactions = store.get_transactions_by_user(user, limit)
    elif action_type:
        transactions = store.get_transactions_by_action_type(action_type, limit)
    else:
        transactions = store.get_transactions(limit)
    return json_response(encode_all(transactions))


async def handle_by_hash(request: web.Request) -> web.Response:
    """
    Handle transaction lookup.

    Status Codes:
        200 OK: Transaction returned.
        404 Not Found: Unknown hash.
    """
    tx_hash = request.match_info["hash"]
    transaction = get_state(request).store.get_transaction_by_hash(tx_hash)
    if transaction is None:
        raise web.HTTPNotFound(reason="Transaction not found")
    return json_response(encode(transaction))
