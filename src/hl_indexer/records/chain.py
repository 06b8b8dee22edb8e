"""Blocks and the transactions they contain."""

from __future__ import annotations

from pydantic import Field

from hl_indexer.types import RecordModel


class Block(RecordModel):
    """A block keyed by its height."""

    block_number: int = Field(ge=0)
    """Height of the block. Natural key."""

    block_hash: str = ""
    """Block hash as reported by the chain."""

    tx_count: int = Field(default=0, ge=0)
    """Number of transactions in the block."""

    proposer: str = ""
    """Address of the proposer."""

    data: str = ""
    """Raw upstream block payload as JSON."""


class Transaction(RecordModel):
    """
    A transaction keyed by its hash.

    The activity feed reports transactions without the containing block's
    hash. That hash is filled in later, either by an in-block ingest or by
    backfill, and is never cleared once known.
    """

    hash: str = Field(min_length=1)
    """Transaction hash. Natural key."""

    block_number: int = Field(default=0, ge=0)
    """Height of the containing block."""

    block_hash: str = ""
    """Hash of the containing block. Empty until known."""

    user: str = ""
    """Sender address."""

    action_type: str = "unknown"
    """Type of the action carried by the transaction."""

    action_data: str = "{}"
    """The action object as JSON."""

    error: str | None = None
    """Error message if the transaction failed."""

    data: str = ""
    """Raw upstream transaction payload as JSON."""

    @property
    def user_key(self) -> str:
        """Address used for case-insensitive user lookups."""
        return self.user.lower()
