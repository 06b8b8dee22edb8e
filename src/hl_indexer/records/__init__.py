"""
Stored record types.

One immutable pydantic model per entity type. Each record carries typed,
validated core fields plus an opaque JSON `data` payload holding the raw
upstream object it was built from.
"""

from .chain import Block, Transaction
from .market import MarketSnapshot, Trade, TradeKey, TradeSide
from .network import Transfer, Validator, ValidatorStatus, Vault

__all__ = [
    "Block",
    "MarketSnapshot",
    "Trade",
    "TradeKey",
    "TradeSide",
    "Transaction",
    "Transfer",
    "Validator",
    "ValidatorStatus",
    "Vault",
]
