"""
Hypurrscan API client.

Hypurrscan serves a rolling window of recent transactions split over two
endpoints, `/someTxs` and `/someMoreTxs`, and a feed of recent transfers.
Its transactions carry the block height but not the block hash.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Final

import httpx

from .base import DEFAULT_TIMEOUT, UpstreamClient
from .ports import UpstreamUnavailableError
from .types import ActivityRecord, parse_records

logger = logging.getLogger(__name__)

BASE_URL: Final = "https://api.hypurrscan.io"
"""Hypurrscan API root."""

ACTIVITY_PATHS: Final = ("/someTxs", "/someMoreTxs")
"""Endpoints whose union is the recent activity window."""

TRANSFERS_PATH: Final = "/transfers"
"""Transfers feed."""

TRANSFER_ACTION_TYPES: Final = frozenset({"sendAsset", "SystemSpotSendAction"})
"""Action types kept from the transfers feed."""


class HypurrscanClient(UpstreamClient):
    """ActivitySource implementation over the Hypurrscan HTTP API."""

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout=timeout, client=client)
        self.base_url = base_url.rstrip("/")

    async def fetch_recent_activity(self) -> list[ActivityRecord]:
        """
        Union of both activity endpoints.

        When a hash appears in both, the first occurrence wins.
        """
        batches = await asyncio.gather(*(self._get_list(path) for path in ACTIVITY_PATHS))

        records: list[ActivityRecord] = []
        seen: set[str] = set()
        for batch in batches:
            for record in parse_records(ActivityRecord, batch, "activity"):
                if record.hash in seen:
                    continue
                seen.add(record.hash)
                records.append(record)
        return records

    async def fetch_transfers(self) -> list[ActivityRecord]:
        """Recent transfers of the supported action types."""
        items = await self._get_list(TRANSFERS_PATH)
        return [
            record
            for record in parse_records(ActivityRecord, items, "transfer")
            if record.action_type in TRANSFER_ACTION_TYPES
        ]

    async def _get_list(self, path: str) -> list[Any]:
        """GET a JSON list. Transient failures are reported and yield []."""
        try:
            response = await self._send(path, "GET", f"{self.base_url}{path}")
        except UpstreamUnavailableError as e:
            self._report(e)
            return []

        if response.status_code >= 400:
            self._report(UpstreamUnavailableError(path, f"HTTP {response.status_code}"))
            return []

        try:
            body = response.json()
        except ValueError:
            logger.debug("Non-JSON response from %s", path)
            return []
        return body if isinstance(body, list) else []
