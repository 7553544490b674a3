"""
Unit tests for deposit and refund intake.

Tests that gateway references make deposits idempotent, including under
concurrent delivery.

Usage:
    python -m pytest tresorier/tests/unit/application/test_record_deposit.py
"""

import asyncio
from decimal import Decimal
from uuid import uuid4

import pytest

from tests.base import TresorierTest
from tests.helpers.fakes import WalletHarness, make_account
from tresorier.application.use_cases.record_deposit import PAYMENT_ID_KEY
from tresorier.domain.entities.account import Account
from tresorier.domain.entities.ledger_entry import EntryKind, EntryStatus
from tresorier.domain.exceptions import (
    ConflictError,
    InvalidAmountError,
    ValidationError,
)
from tresorier.domain.services.i_event_publisher import DEPOSIT_RECORDED


class TestRecordDeposit(TresorierTest):
    """Unit tests for RecordDeposit."""

    component_name = "tresorier"
    test_category = "unit"

    async def test_deposit_credits_wallet(self, harness: WalletHarness):
        """Test a deposit is completed and raises the balance."""
        self.reporter.info("Testing deposit credit", context="Test")

        account_id = uuid4()
        result = await harness.record_deposit().execute(
            account_id, "500.00", gateway_reference="pay_001"
        )

        assert not result.duplicate
        assert result.entry.kind == EntryKind.DEPOSIT
        assert result.entry.status == EntryStatus.COMPLETED
        assert result.entry.amount == Decimal("500.00")
        assert harness.last_uow.commits == 1
        assert DEPOSIT_RECORDED in harness.event_types()

        balances = await harness.get_balances().execute(Account(id=account_id))
        assert balances.wallet_balance == Decimal("500.00")
        assert balances.withdrawable_balance == Decimal("500.00")

    async def test_replay_returns_original(self, harness: WalletHarness):
        """Test the same reference credits only once."""
        account_id = uuid4()

        first = await harness.record_deposit().execute(
            account_id, "500", gateway_reference="pay_002"
        )
        second = await harness.record_deposit().execute(
            account_id, "500", gateway_reference="pay_002"
        )

        assert second.duplicate
        assert second.entry.id == first.entry.id
        assert len(harness.store.entries) == 1

        self.reporter.info("Duplicate deposit ignored", context="Test")

    async def test_concurrent_replays_credit_once(self, harness: WalletHarness):
        """Test parallel callbacks with one reference write one entry."""
        account_id = uuid4()

        results = await asyncio.gather(
            *[
                harness.record_deposit().execute(
                    account_id, "250", gateway_reference="pay_003"
                )
                for _ in range(5)
            ]
        )

        assert sum(1 for r in results if not r.duplicate) == 1
        assert len({r.entry.id for r in results}) == 1
        assert len(harness.store.entries) == 1

    async def test_reference_of_other_account_conflicts(self, harness: WalletHarness):
        """Test a reference reused for another account is a conflict."""
        await harness.record_deposit().execute(
            uuid4(), "10", gateway_reference="pay_004"
        )

        with pytest.raises(ConflictError):
            await harness.record_deposit().execute(
                uuid4(), "10", gateway_reference="pay_004"
            )

    @pytest.mark.parametrize("amount", ["0", "-5", "0.00"])
    async def test_rejects_non_positive(self, harness: WalletHarness, amount):
        """Test zero and negative deposits are refused."""
        with pytest.raises(InvalidAmountError):
            await harness.record_deposit().execute(
                uuid4(), amount, gateway_reference="pay_005"
            )

        assert not harness.store.entries

    async def test_rejects_bad_input(self, harness: WalletHarness):
        """Test malformed amounts and blank references are refused."""
        with pytest.raises(ValidationError):
            await harness.record_deposit().execute(
                uuid4(), "10.001", gateway_reference="pay_006"
            )

        with pytest.raises(ValidationError):
            await harness.record_deposit().execute(
                uuid4(), "10", gateway_reference="  "
            )

    async def test_order_payment_completes_pending_entry(self, harness: WalletHarness):
        """Test a payment for an open order settles that entry in place."""
        self.reporter.info("Testing order completion", context="Test")

        account = make_account()
        order = await harness.create_recharge_order().execute(account, "300")
        order_id = order.order.order_id

        result = await harness.record_deposit().execute(
            account.id, "300", gateway_reference="pay_007", order_id=order_id
        )

        assert result.entry.id == order.entry.id
        assert result.entry.status == EntryStatus.COMPLETED
        assert result.entry.metadata[PAYMENT_ID_KEY] == "pay_007"
        assert result.entry.metadata["receipt"] == order.order.receipt
        assert len(harness.store.entries) == 1

    async def test_order_amount_mismatch_refused(self, harness: WalletHarness):
        """Test a payment that does not match its order leaves it pending."""
        account = make_account()
        order = await harness.create_recharge_order().execute(account, "300")

        with pytest.raises(ValidationError):
            await harness.record_deposit().execute(
                account.id,
                "299",
                gateway_reference="pay_008",
                order_id=order.order.order_id,
            )

        entry = harness.store.entries[order.entry.id]
        assert entry.status == EntryStatus.PENDING

    async def test_order_of_other_account_conflicts(self, harness: WalletHarness):
        """Test an order cannot be completed for a different account."""
        order = await harness.create_recharge_order().execute(make_account(), "300")

        with pytest.raises(ConflictError):
            await harness.record_deposit().execute(
                uuid4(),
                "300",
                gateway_reference="pay_009",
                order_id=order.order.order_id,
            )

    async def test_unknown_order_credits_standalone(self, harness: WalletHarness):
        """Test a payment for an order we never opened is still credited."""
        account_id = uuid4()

        result = await harness.record_deposit().execute(
            account_id, "75", gateway_reference="pay_010", order_id="order_elsewhere"
        )

        assert result.entry.reference == "pay_010"
        assert result.entry.status == EntryStatus.COMPLETED


class TestRecordRefund(TresorierTest):
    """Unit tests for RecordRefund."""

    component_name = "tresorier"
    test_category = "unit"

    async def test_refund_is_idempotent(self, harness: WalletHarness):
        """Test a refund reference credits once."""
        account_id = uuid4()

        first = await harness.record_refund().execute(
            account_id, "120", reference="rfnd_001", booking_id="bk_1"
        )
        second = await harness.record_refund().execute(
            account_id, "120", reference="rfnd_001", booking_id="bk_1"
        )

        assert first.entry.kind == EntryKind.REFUND
        assert first.entry.related_booking_id == "bk_1"
        assert second.duplicate
        assert second.entry.id == first.entry.id

    async def test_refund_reference_used_by_deposit(self, harness: WalletHarness):
        """Test a deposit reference cannot be replayed as a refund."""
        account_id = uuid4()
        await harness.record_deposit().execute(
            account_id, "10", gateway_reference="shared_ref"
        )

        with pytest.raises(ConflictError):
            await harness.record_refund().execute(
                account_id, "10", reference="shared_ref"
            )


if __name__ == "__main__":
    TestRecordDeposit.run_as_main()
