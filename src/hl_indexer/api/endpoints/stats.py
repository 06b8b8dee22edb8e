"""Store statistics endpoint handler."""

from aiohttp import web

from ..app_keys import get_state
from ..params import encode, json_response


async def handle(request: web.Request) -> web.Response:
    """
    Handle statistics request.

    Response: the store statistics object (camelCase fields).
    """
    return json_response(encode(get_state(request).store.get_stats()))
