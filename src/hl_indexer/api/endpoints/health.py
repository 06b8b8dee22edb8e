"""Health endpoint handler."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Final

from aiohttp import web

from ..params import json_response

STATUS_HEALTHY: Final = "ok"
"""Fixed status returned by the health endpoint."""

SERVICE_NAME: Final = "hl-indexer"
"""Fixed service identifier returned by the health endpoint."""


async def handle(_request: web.Request) -> web.Response:
    """
    Handle health check request.

    Response: JSON object with fields:
        - status (string): Always "ok" when the endpoint is reachable.
        - service (string): Fixed identifier "hl-indexer".
        - timestamp (string): Current time, ISO 8601.

    Status Codes:
        200 OK: Server is running.
    """
    return json_response(
        {
            "status": STATUS_HEALTHY,
            "service": SERVICE_NAME,
            "timestamp": datetime.now(UTC).isoformat(),
        }
    )
