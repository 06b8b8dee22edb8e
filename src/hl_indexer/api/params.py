"""Query parameter parsing and response encoding shared by the endpoints."""

from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any, Final

from aiohttp import web
from pydantic import BaseModel

MAX_LIMIT: Final[int] = 1000
"""Largest page size accepted by range endpoints."""


def parse_limit(request: web.Request, default: int) -> int:
    """
    Read the `limit` query parameter.

    Raises:
        web.HTTPBadRequest: If the value is not an integer in `[1, MAX_LIMIT]`.
    """
    raw = request.query.get("limit")
    if raw is None or raw == "":
        return default
    try:
        limit = int(raw)
    except ValueError:
        raise web.HTTPBadRequest(reason=f"Invalid limit: {raw!r}") from None
    if not 1 <= limit <= MAX_LIMIT:
        raise web.HTTPBadRequest(reason=f"limit must be between 1 and {MAX_LIMIT}")
    return limit


def encode(model: BaseModel) -> dict[str, Any]:
    """JSON-ready dict with camelCase keys."""
    return model.model_dump(mode="json", by_alias=True)


def encode_all(models: Iterable[BaseModel]) -> list[dict[str, Any]]:
    """Encode a sequence of models."""
    return [encode(model) for model in models]


def json_response(body: Any, status: int = 200) -> web.Response:
    """JSON response with compact encoding."""
    return web.Response(
        body=json.dumps(body, separators=(",", ":")),
        status=status,
        content_type="application/json",
    )
