"""Typed keys for values stored on the aiohttp application."""

from aiohttp import web

from .state import ServerState

STATE_KEY = web.AppKey("state", ServerState)
"""Server state shared by every handler."""


def get_state(request: web.Request) -> ServerState:
    """Server state of the application handling a request."""
    return request.app[STATE_KEY]
