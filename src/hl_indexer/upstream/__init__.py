"""
Upstream data sources.

Ports describing what the sync engine needs, wire record types, and the
httpx clients implementing the ports against the public APIs.
"""

from .base import DEFAULT_TIMEOUT, UpstreamClient
from .explorer_client import HypurrscanClient
from .info_client import HyperliquidInfoClient
from .ports import (
    ActivitySource,
    ChainSource,
    HeightStatus,
    RateLimitedError,
    UpstreamUnavailableError,
)
from .types import (
    ActivityRecord,
    BlockDetails,
    MarketDescriptor,
    TradeRecord,
    ValidatorSummary,
    VaultSummary,
    WireModel,
    parse_records,
)

__all__ = [
    "ActivityRecord",
    "ActivitySource",
    "BlockDetails",
    "ChainSource",
    "DEFAULT_TIMEOUT",
    "HeightStatus",
    "HyperliquidInfoClient",
    "HypurrscanClient",
    "MarketDescriptor",
    "RateLimitedError",
    "TradeRecord",
    "UpstreamClient",
    "UpstreamUnavailableError",
    "ValidatorSummary",
    "VaultSummary",
    "WireModel",
    "parse_records",
]
