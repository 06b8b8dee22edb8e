"""Shared plumbing for the httpx-based upstream clients."""

from __future__ import annotations

import logging
from typing import Any, Final

import httpx

from hl_indexer import metrics

from .ports import RateLimitedError, UpstreamUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT: Final[float] = 5.0
"""HTTP request timeout in seconds."""


class UpstreamClient:
    """
    Base class owning an httpx client and failure reporting.

    A failing endpoint tends to keep failing for a while. The first failure
    of each kind per endpoint is logged as a warning; repeats go to debug
    so a flaky upstream does not flood the log.
    """

    def __init__(
        self, timeout: float = DEFAULT_TIMEOUT, client: httpx.AsyncClient | None = None
    ) -> None:
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._reported: set[tuple[str, str]] = set()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _send(
        self, endpoint: str, method: str, url: str, **kwargs: Any
    ) -> httpx.Response:
        """
        Issue a request, translating transport failures.

        Raises:
            RateLimitedError: On HTTP 429.
            UpstreamUnavailableError: On timeouts, transport errors, and 5xx.
        """
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise UpstreamUnavailableError(endpoint, "timeout") from e
        except httpx.RequestError as e:
            raise UpstreamUnavailableError(endpoint, f"request failed: {e}") from e

        if response.status_code == 429:
            raise RateLimitedError(endpoint)
        if response.status_code >= 500:
            raise UpstreamUnavailableError(endpoint, f"HTTP {response.status_code}")
        return response

    def _report(self, error: UpstreamUnavailableError) -> None:
        """Count a failure and log it, loudly only the first time."""
        metrics.upstream_failures.labels(endpoint=error.endpoint).inc()

        kind = (error.endpoint, type(error).__name__)
        if kind in self._reported:
            logger.debug("Upstream failure: %s", error)
            return
        self._reported.add(kind)
        logger.warning("Upstream failure: %s (repeats logged at debug level)", error)
