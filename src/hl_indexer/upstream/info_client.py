"""
Hyperliquid info API client.

Market, validator and vault data come from the `/info` endpoint, which
takes a JSON body `{"type": <request type>, ...params}`. Block details are
served by the explorer endpoint with the same request shape.

The explorer only serves a window of recent heights. Heights beyond the
tip return nothing; heights behind the window return an error mentioning
"archived". Both are reported as a `HeightStatus`, never raised.
"""

from __future__ import annotations

import logging
from typing import Any, Final

import httpx
from pydantic import ValidationError

from .base import DEFAULT_TIMEOUT, UpstreamClient
from .ports import HeightStatus, UpstreamUnavailableError
from .types import (
    BlockDetails,
    MarketDescriptor,
    TradeRecord,
    ValidatorSummary,
    VaultSummary,
    parse_records,
)

logger = logging.getLogger(__name__)

INFO_URL: Final = "https://api.hyperliquid.xyz/info"
"""Info endpoint."""

EXPLORER_URL: Final = "https://rpc.hyperliquid.xyz/explorer"
"""Explorer endpoint serving block details."""

ARCHIVED_MARKER: Final = "archived"
"""Substring identifying an archived-height error."""


def _decode(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _mentions_archived(response: httpx.Response) -> bool:
    return ARCHIVED_MARKER in response.text.lower()


class HyperliquidInfoClient(UpstreamClient):
    """ChainSource implementation over the Hyperliquid HTTP API."""

    def __init__(
        self,
        info_url: str = INFO_URL,
        explorer_url: str = EXPLORER_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(timeout=timeout, client=client)
        self.info_url = info_url
        self.explorer_url = explorer_url

    async def fetch_block(self, height: int) -> BlockDetails | HeightStatus:
        """
        Fetch a block by height.

        Returns:
            The block, `HeightStatus.ARCHIVED` for heights behind the serving
            window, or `HeightStatus.UNAVAILABLE` when no block is served.

        Raises:
            UpstreamUnavailableError: On timeouts, rate limits, and 5xx.
        """
        response = await self._send(
            "blockDetails",
            "POST",
            self.explorer_url,
            json={"type": "blockDetails", "height": height},
        )
        body = _decode(response)

        if response.status_code >= 400:
            if _mentions_archived(response):
                return HeightStatus.ARCHIVED
            return HeightStatus.UNAVAILABLE

        if isinstance(body, dict) and isinstance(body.get("error"), str):
            if ARCHIVED_MARKER in body["error"].lower():
                return HeightStatus.ARCHIVED
            return HeightStatus.UNAVAILABLE

        details = body.get("blockDetails") if isinstance(body, dict) else None
        if not details:
            return HeightStatus.UNAVAILABLE

        try:
            return BlockDetails.from_wire(details)
        except ValidationError as e:
            logger.debug("Malformed block %d: %s", height, e)
            return HeightStatus.UNAVAILABLE

    async def fetch_market_meta(self) -> list[MarketDescriptor]:
        """Perpetuals universe."""
        body = await self._info("meta")
        universe = body.get("universe") if isinstance(body, dict) else None
        if not isinstance(universe, list):
            return []
        return parse_records(MarketDescriptor, universe, "market")

    async def fetch_mid_prices(self) -> dict[str, float]:
        """Mid price per symbol; unparsable prices are dropped."""
        body = await self._info("allMids")
        if not isinstance(body, dict):
            return {}

        prices: dict[str, float] = {}
        for symbol, raw in body.items():
            try:
                prices[symbol] = float(raw)
            except (TypeError, ValueError):
                logger.debug("Skipping unparsable mid price for %s: %r", symbol, raw)
        return prices

    async def fetch_recent_trades(self, symbol: str) -> list[TradeRecord]:
        """Recent fills of one market."""
        body = await self._info("recentTrades", coin=symbol)
        if not isinstance(body, list):
            return []
        return parse_records(TradeRecord, body, "trade")

    async def fetch_validators(self) -> list[ValidatorSummary]:
        """Validator summaries."""
        body = await self._info("validatorSummaries")
        if not isinstance(body, list):
            return []
        return parse_records(ValidatorSummary, body, "validator")

    async def fetch_vaults(self) -> list[VaultSummary]:
        """Vault summaries."""
        body = await self._info("vaultSummaries")
        if not isinstance(body, list):
            return []
        return parse_records(VaultSummary, body, "vault")

    async def _info(self, request_type: str, **params: Any) -> Any:
        """
        Post an info request.

        Transient failures are reported and yield None.
        """
        try:
            response = await self._send(
                request_type, "POST", self.info_url, json={"type": request_type, **params}
            )
        except UpstreamUnavailableError as e:
            self._report(e)
            return None

        if response.status_code >= 400:
            self._report(UpstreamUnavailableError(request_type, f"HTTP {response.status_code}"))
            return None
        return _decode(response)
