"""
Unit tests for ProcessPaymentWebhook.

Tests signature checks, at-least-once delivery of captured payments and
asynchronous payout settlement.

Usage:
    python -m pytest tresorier/tests/unit/application/test_process_payment_webhook.py
"""

import json
from decimal import Decimal
from uuid import uuid4

import pytest

from tests.base import TresorierTest
from tests.helpers.fakes import (
    WEBHOOK_SECRET,
    FakePayoutGateway,
    WalletHarness,
    make_account,
)
from tresorier.domain.entities.ledger_entry import EntryKind, EntryStatus
from tresorier.domain.exceptions import InvalidSignatureError, ValidationError
from tresorier.domain.services.i_payout_gateway import PayoutStatus
from tresorier.infrastructure.gateways.webhook_signature import compute_signature


def payment_captured(account_id, payment_id="pay_W1", amount=50000) -> dict:
    return {
        "event": "payment.captured",
        "payload": {
            "payment": {
                "entity": {
                    "id": payment_id,
                    "amount": amount,
                    "currency": "INR",
                    "method": "upi",
                    "notes": {"account_id": str(account_id)},
                }
            }
        },
    }


def payout_event(event: str, entry_id, failure_reason=None) -> dict:
    entity = {"id": "pout_W1", "reference_id": str(entry_id), "status": event[7:]}
    if failure_reason:
        entity["failure_reason"] = failure_reason
    return {"event": event, "payload": {"payout": {"entity": entity}}}


class TestProcessPaymentWebhook(TresorierTest):
    """Unit tests for gateway webhooks."""

    component_name = "tresorier"
    test_category = "unit"

    # ================================================================
    # Helper Methods
    # ================================================================

    async def _deliver(self, harness: WalletHarness, payload: dict):
        body = json.dumps(payload).encode("utf-8")
        return await harness.process_webhook().execute(
            body, compute_signature(WEBHOOK_SECRET, body)
        )

    async def _pending_withdrawal(self, harness: WalletHarness):
        account = make_account()
        await harness.fund(account.id, "1000")
        bank_account = harness.add_verified_bank_account(account.id)
        result = await harness.request_withdrawal().execute(
            account, "400", bank_account.id
        )
        assert result.entry.status == EntryStatus.PENDING
        return account, result.entry

    # ================================================================
    # Test Methods
    # ================================================================

    async def test_rejects_bad_signature(self, harness: WalletHarness):
        """Test a tampered body is refused before parsing."""
        self.reporter.info("Testing webhook signature", context="Test")

        body = json.dumps(payment_captured(uuid4())).encode("utf-8")
        signature = compute_signature(WEBHOOK_SECRET, body)

        with pytest.raises(InvalidSignatureError):
            await harness.process_webhook().execute(body + b" ", signature)

        with pytest.raises(InvalidSignatureError):
            await harness.process_webhook().execute(body, None)

        assert not harness.store.entries

    async def test_captured_payment_credits_once(self, harness: WalletHarness):
        """Test a captured payment is credited and its replay acknowledged."""
        account_id = uuid4()
        payload = payment_captured(account_id, amount=50050)

        first = await self._deliver(harness, payload)
        second = await self._deliver(harness, payload)

        assert first.status == "processed"
        assert second.status == "duplicate"
        assert second.entry_id == first.entry_id

        entry = harness.store.entries[first.entry_id]
        assert entry.kind == EntryKind.DEPOSIT
        assert entry.amount == Decimal("500.50")
        assert entry.reference == "pay_W1"

    async def test_captured_payment_needs_account(self, harness: WalletHarness):
        """Test a payment without an account note is malformed."""
        payload = payment_captured(uuid4())
        payload["payload"]["payment"]["entity"]["notes"] = {}

        with pytest.raises(ValidationError):
            await self._deliver(harness, payload)

    async def test_rejects_non_json_body(self, harness: WalletHarness):
        """Test a signed but unparsable body is a validation error."""
        body = b"not json"

        with pytest.raises(ValidationError):
            await harness.process_webhook().execute(
                body, compute_signature(WEBHOOK_SECRET, body)
            )

    async def test_payout_processed_completes(self):
        """Test a processed payout completes the pending withdrawal."""
        harness = WalletHarness(FakePayoutGateway(status=PayoutStatus.PROCESSING))
        account, entry = await self._pending_withdrawal(harness)

        result = await self._deliver(harness, payout_event("payout.processed", entry.id))
        replay = await self._deliver(harness, payout_event("payout.processed", entry.id))

        assert result.status == "processed"
        assert replay.status == "duplicate"
        assert harness.store.entries[entry.id].status == EntryStatus.COMPLETED

        balances = await harness.get_balances().execute(account)
        assert balances.wallet_balance == Decimal("600.00")
        assert balances.pending_withdrawals == Decimal("0.00")

    async def test_payout_failed_releases_funds(self):
        """Test a failed payout releases the reservation."""
        harness = WalletHarness(FakePayoutGateway(status=PayoutStatus.PROCESSING))
        account, entry = await self._pending_withdrawal(harness)

        result = await self._deliver(
            harness,
            payout_event("payout.failed", entry.id, failure_reason="account_closed"),
        )

        assert result.status == "processed"
        settled = harness.store.entries[entry.id]
        assert settled.status == EntryStatus.FAILED
        assert settled.metadata["failure_reason"] == "account_closed"

        balances = await harness.get_balances().execute(account)
        assert balances.withdrawable_balance == Decimal("1000.00")

    async def test_contradicting_payout_flagged(self):
        """Test a failure after completion is flagged, not applied."""
        harness = WalletHarness(FakePayoutGateway(status=PayoutStatus.PROCESSING))
        account, entry = await self._pending_withdrawal(harness)
        await self._deliver(harness, payout_event("payout.processed", entry.id))

        result = await self._deliver(harness, payout_event("payout.reversed", entry.id))

        assert result.status == "needs_reconciliation"
        assert harness.store.entries[entry.id].status == EntryStatus.COMPLETED

    async def test_payout_for_unknown_entry_ignored(self, harness: WalletHarness):
        """Test a payout callback for no known withdrawal is acknowledged."""
        result = await self._deliver(harness, payout_event("payout.processed", uuid4()))

        assert result.status == "ignored"

    async def test_unknown_event_ignored(self, harness: WalletHarness):
        """Test unhandled events are acknowledged without side effects."""
        result = await self._deliver(
            harness, {"event": "refund.created", "payload": {}}
        )

        assert result.event == "refund.created"
        assert result.status == "ignored"
        assert not harness.store.entries


if __name__ == "__main__":
    TestProcessPaymentWebhook.run_as_main()
