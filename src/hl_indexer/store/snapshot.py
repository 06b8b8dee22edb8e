"""
Persisted snapshot document.

The whole store is written as one JSON object::

    {
      "markets": [...], "trades": [...], "blocks": [...],
      "hyperliquidTransactions": [...], "validators": [...],
      "vaults": [...], "transfers": [...],
      "nextId": {"markets": 1, "trades": 1, ...}
    }

Missing collections load as empty, missing counters as 1. Unknown fields
are ignored. A malformed record is skipped without failing the load.
"""

from __future__ import annotations

import logging
from typing import Any, Final

from pydantic import Field, ValidationError

from hl_indexer.records import (
    Block,
    MarketSnapshot,
    Trade,
    Transaction,
    Transfer,
    Validator,
    Vault,
)
from hl_indexer.types import CamelModel, RecordModel

logger = logging.getLogger(__name__)


class NextIds(CamelModel):
    """Next surrogate id per entity type."""

    markets: int = Field(default=1, ge=1)
    trades: int = Field(default=1, ge=1)
    blocks: int = Field(default=1, ge=1)
    hyperliquid_transactions: int = Field(default=1, ge=1)
    validators: int = Field(default=1, ge=1)
    vaults: int = Field(default=1, ge=1)
    transfers: int = Field(default=1, ge=1)


class StoreSnapshot(CamelModel):
    """Complete contents of the store at one instant."""

    markets: list[MarketSnapshot] = Field(default_factory=list)
    trades: list[Trade] = Field(default_factory=list)
    blocks: list[Block] = Field(default_factory=list)
    hyperliquid_transactions: list[Transaction] = Field(default_factory=list)
    validators: list[Validator] = Field(default_factory=list)
    vaults: list[Vault] = Field(default_factory=list)
    transfers: list[Transfer] = Field(default_factory=list)
    next_id: NextIds = Field(default_factory=NextIds)

    def to_json(self) -> str:
        """Serialize with camelCase keys."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_document(cls, document: Any) -> StoreSnapshot:
        """
        Build a snapshot from a decoded JSON document, record by record.

        Raises:
            ValueError: If the document is not a JSON object.
        """
        if not isinstance(document, dict):
            raise ValueError(f"Snapshot document must be an object, got {type(document).__name__}")

        collections: dict[str, list[RecordModel]] = {}
        skipped = 0
        for name, record_type in COLLECTIONS.items():
            alias = cls.model_fields[name].alias or name
            raw_items = document.get(alias) or []
            if not isinstance(raw_items, list):
                logger.warning("Ignoring snapshot collection %s: not a list", alias)
                raw_items = []

            records: list[RecordModel] = []
            for item in raw_items:
                try:
                    records.append(record_type.model_validate(item))
                except ValidationError as e:
                    skipped += 1
                    logger.debug("Skipping malformed %s record: %s", alias, e)
            collections[name] = records

        try:
            next_id = NextIds.model_validate(document.get("nextId") or {})
        except ValidationError as e:
            logger.warning("Ignoring malformed id counters: %s", e)
            next_id = NextIds()

        if skipped:
            logger.warning("Skipped %d malformed records while loading snapshot", skipped)

        return cls(**collections, next_id=next_id)


COLLECTIONS: Final[dict[str, type[RecordModel]]] = {
    "markets": MarketSnapshot,
    "trades": Trade,
    "blocks": Block,
    "hyperliquid_transactions": Transaction,
    "validators": Validator,
    "vaults": Vault,
    "transfers": Transfer,
}
"""Snapshot collection field names and their record types."""
