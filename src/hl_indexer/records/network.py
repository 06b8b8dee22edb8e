"""Validators, vaults and transfers."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from hl_indexer.types import RecordModel


class ValidatorStatus(StrEnum):
    """Validator standing as reported by the validator summaries."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    JAILED = "jailed"


class Validator(RecordModel):
    """
    A validator keyed by address.

    Updates are merged field by field: values left at their defaults in an
    incoming update do not overwrite what is already stored.
    """

    address: str = Field(min_length=1)
    """Validator address. Natural key."""

    voting_power: float = 0.0
    """Stake in native units."""

    status: ValidatorStatus
    """Current standing."""

    uptime: float = Field(default=0.0, ge=0.0, le=100.0)
    """Uptime over the last day, as a percentage."""

    data: str = ""
    """Raw upstream summary as JSON."""


class Vault(RecordModel):
    """A vault keyed by address. Merged field by field like validators."""

    address: str = Field(min_length=1)
    """Vault address. Natural key."""

    name: str = ""
    equity: float = 0.0
    total_deposits: float = 0.0
    total_withdrawals: float = 0.0

    data: str = ""
    """Raw upstream summary as JSON."""


class Transfer(RecordModel):
    """A token transfer. Inserted once and never updated."""

    hash: str = Field(min_length=1)
    """Transaction hash of the transfer. Natural key."""

    block_number: int = Field(default=0, ge=0)

    sender: str = Field(default="", alias="from")
    """Source address."""

    recipient: str = Field(default="", alias="to")
    """Destination address."""

    token: str = ""
    amount: float = 0.0

    data: str = ""
    """Raw upstream transfer payload as JSON."""
