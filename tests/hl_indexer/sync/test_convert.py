"""Tests for wire-to-record conversion."""

from __future__ import annotations

import json

import pytest

from hl_indexer.records import TradeSide, ValidatorStatus
from hl_indexer.sync.convert import (
    block_from_details,
    market_from_descriptor,
    trade_from_record,
    transaction_from_activity,
    transfer_from_activity,
    validator_from_summary,
    vault_from_summary,
)
from hl_indexer.upstream import MarketDescriptor, TradeRecord, ValidatorSummary, VaultSummary
from tests.hl_indexer.helpers import NOW, make_activity, make_block_details, raw_activity


class TestChainConversion:
    """Tests for blocks and transactions."""

    def test_block_from_details(self) -> None:
        """Block times are converted to seconds and txs are counted."""
        details = make_block_details(7, txs=[raw_activity("0x1", 7), raw_activity("0x2", 7)])

        block = block_from_details(details)

        assert block.block_number == 7
        assert block.timestamp == NOW
        assert block.tx_count == 2
        assert block.proposer == "0xproposer"
        assert "txs" not in json.loads(block.data)

    def test_transaction_from_activity(self) -> None:
        """Feed records become transactions without a block hash."""
        record = make_activity("0x1", 42, user="0xU", action={"type": "order", "px": 1})

        tx = transaction_from_activity(record)

        assert tx.block_number == 42
        assert tx.block_hash == ""
        assert tx.timestamp == NOW
        assert tx.action_type == "order"
        assert json.loads(tx.action_data) == {"type": "order", "px": 1}
        assert json.loads(tx.data)["hash"] == "0x1"

    def test_in_block_transaction_takes_block_fields(self) -> None:
        """In-block records carry the containing block's hash and height."""
        record = make_activity("0x1", 0)

        tx = transaction_from_activity(record, block_hash="0xblock", block_number=9)

        assert tx.block_hash == "0xblock"
        assert tx.block_number == 9


class TestTransferConversion:
    """Tests for transfer amounts."""

    def test_amount_field(self) -> None:
        """An explicit amount is used as-is."""
        record = make_activity(
            "0x1",
            5,
            action={"type": "sendAsset", "amount": "2.5", "destination": "0xto", "token": "USDC"},
        )

        transfer = transfer_from_activity(record)

        assert transfer.amount == 2.5
        assert transfer.recipient == "0xto"
        assert transfer.token == "USDC"
        assert transfer.sender == "0xUser"

    def test_wei_field(self) -> None:
        """Wei amounts are scaled to whole tokens."""
        record = make_activity("0x1", 5, action={"type": "SystemSpotSendAction", "wei": 3e18})

        assert transfer_from_activity(record).amount == 3.0

    def test_no_amount(self) -> None:
        """A transfer without an amount records zero."""
        record = make_activity("0x1", 5, action={"type": "sendAsset"})

        assert transfer_from_activity(record).amount == 0.0

    @pytest.mark.parametrize("amount", [{"x": 1}, [1], True])
    def test_non_numeric_amount_rejected(self, amount: object) -> None:
        """Amounts that are not numbers or numeric strings raise ValueError."""
        record = make_activity("0x1", 5, action={"type": "sendAsset", "amount": amount})

        with pytest.raises(ValueError, match="amount is not numeric"):
            transfer_from_activity(record)


class TestNetworkConversion:
    """Tests for validators and vaults."""

    def test_validator_status_precedence(self) -> None:
        """Jailed beats active; neither is inactive."""
        jailed = ValidatorSummary.from_wire(
            {"validator": "0xv", "isJailed": True, "isActive": True}
        )
        idle = ValidatorSummary.from_wire({"validator": "0xv"})

        assert validator_from_summary(jailed, NOW).status is ValidatorStatus.JAILED
        assert validator_from_summary(idle, NOW).status is ValidatorStatus.INACTIVE

    def test_validator_uptime_and_stake(self) -> None:
        """Uptime is a percentage and stake is scaled down."""
        summary = ValidatorSummary.from_wire(
            {
                "validator": "0xv",
                "isActive": True,
                "stake": 5e18,
                "stats": [["day", {"uptimeFraction": "0.5"}]],
            }
        )

        validator = validator_from_summary(summary, NOW)

        assert validator.uptime == 50.0
        assert validator.voting_power == 5.0
        assert validator.timestamp == NOW

    def test_validator_uptime_clamped(self) -> None:
        """Out-of-range fractions are clamped."""
        summary = ValidatorSummary.from_wire(
            {"validator": "0xv", "stats": [["day", {"uptimeFraction": 1.7}]]}
        )

        assert validator_from_summary(summary, NOW).uptime == 100.0

    def test_vault(self) -> None:
        """Vault summaries keep their balances."""
        summary = VaultSummary.from_wire(
            {"vaultAddress": "0xvault", "name": "HLP", "equity": 10, "totalDeposits": 12}
        )

        vault = vault_from_summary(summary, NOW)

        assert vault.address == "0xvault"
        assert vault.total_deposits == 12.0


class TestMarketConversion:
    """Tests for markets and trades."""

    def test_trade_side(self) -> None:
        """Side "B" is a buy, anything else a sell."""
        buy = TradeRecord.from_wire(
            {"coin": "BTC", "side": "B", "px": 1, "sz": 2, "time": NOW * 1000, "hash": "0x1"}
        )
        sell = TradeRecord.from_wire(
            {"coin": "BTC", "side": "A", "px": 1, "sz": 2, "time": NOW * 1000}
        )

        assert trade_from_record(buy).side is TradeSide.BUY
        assert trade_from_record(sell).side is TradeSide.SELL
        assert trade_from_record(buy).timestamp == NOW

    def test_trade_keeps_fill_milliseconds(self) -> None:
        """The raw fill time is kept at millisecond precision."""
        record = TradeRecord.from_wire(
            {"coin": "BTC", "side": "B", "px": 1, "sz": 2, "time": NOW * 1000 + 750}
        )

        trade = trade_from_record(record)

        assert trade.timestamp == NOW
        assert trade.time_ms == NOW * 1000 + 750

    def test_market(self) -> None:
        """Markets are stamped with the fetch time."""
        descriptor = MarketDescriptor.from_wire({"name": "ETH"})

        market = market_from_descriptor(descriptor, 3000.0, NOW)

        assert market.symbol == "ETH"
        assert market.price == 3000.0
        assert market.timestamp == NOW
