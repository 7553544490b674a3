"""
Process Payment Webhook use case.

Handles signed callbacks from the payment gateway: captured payments credit
the wallet, payout callbacks settle withdrawals accepted asynchronously.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional
from uuid import UUID

from tresorier.application.use_cases.record_deposit import RecordDeposit
from tresorier.application.use_cases.settle_withdrawal import SettleWithdrawal
from tresorier.domain.entities.ledger_entry import EntryKind, EntryStatus
from tresorier.domain.exceptions import ValidationError
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.i_balance_cache import IBalanceCache
from tresorier.domain.services.i_event_publisher import IEventPublisher
from tresorier.domain.services.i_lock_manager import ILockManager
from tresorier.domain.value_objects import from_minor
from tresorier.infrastructure.gateways.webhook_signature import verify_signature
from tresorier.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)

PAYMENT_CAPTURED = "payment.captured"
PAYMENT_FAILED = "payment.failed"
PAYOUT_PROCESSED = "payout.processed"
PAYOUT_FAILED = "payout.failed"
PAYOUT_REVERSED = "payout.reversed"

PAYOUT_OUTCOMES = {
    PAYOUT_PROCESSED: EntryStatus.COMPLETED,
    PAYOUT_FAILED: EntryStatus.FAILED,
    PAYOUT_REVERSED: EntryStatus.FAILED,
}


@dataclass
class WebhookResult:
    """
    Acknowledgement returned to the gateway.

    Attributes:
        event: Event name from the payload
        status: processed, duplicate, ignored or needs_reconciliation
        entry_id: Ledger entry touched, if any
    """

    event: str
    status: str
    entry_id: Optional[UUID] = None


class ProcessPaymentWebhook:
    """
    Verify and dispatch a gateway webhook.

    Business rules:
    - The signature covers the raw body and is checked before parsing
    - Deliveries are at-least-once: replays are acknowledged, not errors
    - A payout callback contradicting a settled entry is flagged for
      reconciliation and never rewrites the ledger
    - Unknown events are acknowledged and ignored
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        locks: ILockManager,
        event_publisher: IEventPublisher,
        webhook_secret: str,
        balance_cache: Optional[IBalanceCache] = None,
    ):
        self.uow = uow
        self.webhook_secret = webhook_secret
        self.record_deposit = RecordDeposit(uow, locks, event_publisher, balance_cache)
        self.settle_withdrawal = SettleWithdrawal(
            uow, locks, event_publisher, balance_cache
        )

    async def execute(self, body: bytes, signature: Optional[str]) -> WebhookResult:
        """
        Execute webhook handling.

        Args:
            body: Raw request body
            signature: X-Razorpay-Signature header value

        Returns:
            WebhookResult

        Raises:
            InvalidSignatureError: Signature missing or wrong
            ValidationError: Body is not a well-formed event
        """
        verify_signature(self.webhook_secret, body, signature)

        try:
            payload = json.loads(body)
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise ValidationError("body", "Webhook body is not valid JSON")
        if not isinstance(payload, dict) or not payload.get("event"):
            raise ValidationError("event", "Webhook event is required")

        event = payload["event"]
        logger.info("Webhook received", extra={"event": event})

        if event == PAYMENT_CAPTURED:
            return await self._payment_captured(event, payload)

        if event == PAYMENT_FAILED:
            payment = self._entity(payload, "payment")
            logger.warning(
                "Payment failed at gateway",
                extra={
                    "payment_id": payment.get("id"),
                    "error_code": payment.get("error_code"),
                },
            )
            return WebhookResult(event=event, status="ignored")

        if event in PAYOUT_OUTCOMES:
            return await self._payout(event, payload)

        return WebhookResult(event=event, status="ignored")

    async def _payment_captured(
        self, event: str, payload: Dict[str, Any]
    ) -> WebhookResult:
        payment = self._entity(payload, "payment")
        notes = payment.get("notes") or {}

        account_id = self._uuid(notes.get("account_id"), "notes.account_id")
        amount_minor = payment.get("amount")
        if not isinstance(amount_minor, int) or isinstance(amount_minor, bool):
            raise ValidationError("amount", "Amount must be an integer in paise")
        payment_id = payment.get("id")
        if not payment_id:
            raise ValidationError("id", "Payment id is required")

        result = await self.record_deposit.execute(
            account_id=account_id,
            amount=from_minor(amount_minor),
            gateway_reference=payment_id,
            metadata={"gateway": "razorpay", "method": payment.get("method")},
            order_id=payment.get("order_id"),
        )
        return WebhookResult(
            event=event,
            status="duplicate" if result.duplicate else "processed",
            entry_id=result.entry.id,
        )

    async def _payout(self, event: str, payload: Dict[str, Any]) -> WebhookResult:
        payout = self._entity(payload, "payout")
        notes = payout.get("notes") or {}
        raw_id = payout.get("reference_id") or notes.get("entry_id")
        entry_id = self._uuid(raw_id, "reference_id")
        outcome = PAYOUT_OUTCOMES[event]

        entry = await self.uow.ledger.get_by_id(entry_id)
        if entry is None or entry.kind != EntryKind.WITHDRAWAL:
            logger.warning(
                "Payout webhook for unknown withdrawal",
                extra={"entry_id": str(entry_id), "event": event},
            )
            return WebhookResult(event=event, status="ignored")

        if entry.status == outcome:
            return WebhookResult(event=event, status="duplicate", entry_id=entry.id)

        if not entry.is_pending:
            logger.error(
                "Payout webhook contradicts settled withdrawal",
                extra={
                    "entry_id": str(entry.id),
                    "event": event,
                    "entry_status": entry.status.value,
                },
            )
            return WebhookResult(
                event=event, status="needs_reconciliation", entry_id=entry.id
            )

        metadata = {"payout_id": payout.get("id")} if payout.get("id") else None
        reason = payout.get("failure_reason") or (
            "reversed" if event == PAYOUT_REVERSED else "payout_failed"
        )
        settled = await self.settle_withdrawal.execute(
            entry.id,
            outcome,
            failure_reason=reason if outcome == EntryStatus.FAILED else None,
            metadata=metadata,
            allow_settled=True,
        )
        return WebhookResult(event=event, status="processed", entry_id=settled.id)

    @staticmethod
    def _entity(payload: Dict[str, Any], name: str) -> Dict[str, Any]:
        try:
            entity = payload["payload"][name]["entity"]
        except (KeyError, TypeError):
            raise ValidationError("payload", f"Missing {name} entity")
        if not isinstance(entity, dict):
            raise ValidationError("payload", f"Malformed {name} entity")
        return entity

    @staticmethod
    def _uuid(value: Any, field: str) -> UUID:
        try:
            return UUID(str(value))
        except (TypeError, ValueError):
            raise ValidationError(field, "Expected a UUID")
