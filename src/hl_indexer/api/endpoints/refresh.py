"""Manual sync trigger handler."""

from __future__ import annotations

import dataclasses

from aiohttp import web

from ..app_keys import get_state
from ..params import json_response


async def handle(request: web.Request) -> web.Response:
    """
    Run one sync cycle now.

    Status Codes:
        200 OK: Cycle ran; body carries its report.
        409 Conflict: A cycle is already in flight.
        503 Service Unavailable: Syncing is disabled.
    """
    service = get_state(request).sync_service
    if service is None:
        raise web.HTTPServiceUnavailable(reason="Sync is disabled")

    report = await service.trigger()
    if report is None:
        return json_response({"success": False, "message": "Sync already in progress"}, 409)
    return json_response({"success": report.ok, "report": dataclasses.asdict(report)})
