"""Test helpers for hl_indexer unit tests."""

from .builders import (
    NOW,
    MutableTime,
    make_activity,
    make_block,
    make_block_details,
    make_market,
    make_trade,
    make_transaction,
    make_transfer,
    make_validator,
    make_vault,
    raw_activity,
    raw_block_details,
)
from .mocks import MemoryDatabase, MockActivitySource, MockChainSource

__all__ = [
    "MemoryDatabase",
    "MockActivitySource",
    "MockChainSource",
    "MutableTime",
    "NOW",
    "make_activity",
    "make_block",
    "make_block_details",
    "make_market",
    "make_trade",
    "make_transaction",
    "make_transfer",
    "make_validator",
    "make_vault",
    "raw_activity",
    "raw_block_details",
]
