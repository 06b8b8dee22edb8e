"""Tests for the record base model."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from hl_indexer.records import Validator, ValidatorStatus, Vault
from tests.hl_indexer.helpers import NOW


class TestRecordModel:
    """Tests for shared record behavior."""

    def test_timestamp_normalized_on_validation(self) -> None:
        """Millisecond timestamps are stored as seconds."""
        vault = Vault(address="0xv", timestamp=NOW * 1000 + 500)

        assert vault.timestamp == NOW

    def test_records_are_frozen(self) -> None:
        """Records cannot be mutated in place."""
        vault = Vault(address="0xv", timestamp=NOW)

        with pytest.raises(ValidationError):
            vault.name = "renamed"  # type: ignore[misc]

    def test_with_id_returns_copy(self) -> None:
        """Assigning an id leaves the original untouched."""
        vault = Vault(address="0xv", timestamp=NOW)
        stored = vault.with_id(7)

        assert stored.id == 7
        assert vault.id == 0
        assert stored.address == "0xv"

    def test_invalid_timestamp_rejected(self) -> None:
        """A negative timestamp fails validation."""
        with pytest.raises(ValidationError):
            Vault(address="0xv", timestamp=-5)


class TestMergedOver:
    """Tests for field-level merging of partial updates."""

    def test_explicit_values_win(self) -> None:
        """Provided non-default fields overwrite the stored ones."""
        existing = Vault(address="0xv", name="Alpha", equity=10.0, timestamp=NOW).with_id(3)
        incoming = Vault(address="0xv", equity=25.0, timestamp=NOW + 60)

        merged = incoming.merged_over(existing)

        assert merged.equity == 25.0
        assert merged.timestamp == NOW + 60

    def test_defaults_do_not_clobber(self) -> None:
        """Fields left at their default keep the stored value."""
        existing = Vault(address="0xv", name="Alpha", equity=10.0, timestamp=NOW)
        incoming = Vault(address="0xv", name="", equity=0.0, timestamp=NOW)

        merged = incoming.merged_over(existing)

        assert merged.name == "Alpha"
        assert merged.equity == 10.0

    def test_id_is_kept(self) -> None:
        """The stored surrogate id survives a merge."""
        existing = Vault(address="0xv", timestamp=NOW).with_id(9)
        incoming = Vault(address="0xv", timestamp=NOW).with_id(1)

        assert incoming.merged_over(existing).id == 9

    def test_required_fields_always_apply(self) -> None:
        """Required fields overwrite even when equal to a typical default."""
        existing = Validator(address="0xa", status=ValidatorStatus.JAILED, timestamp=NOW)
        incoming = Validator(address="0xa", status=ValidatorStatus.ACTIVE, timestamp=NOW)

        assert incoming.merged_over(existing).status is ValidatorStatus.ACTIVE
