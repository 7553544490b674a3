"""
Verify Checkout Payment use case.

The checkout hands the client order id, payment id and a signature over
both. A valid signature proves the gateway accepted the payment for our
order, so the pending recharge can be credited without waiting for the
webhook.
"""

from typing import Optional

from tresorier.application.use_cases.create_recharge_order import ORDER_ID_KEY
from tresorier.application.use_cases.record_deposit import DepositResult, RecordDeposit
from tresorier.domain.entities.account import Account
from tresorier.domain.entities.ledger_entry import EntryKind
from tresorier.domain.exceptions import (
    GatewayError,
    LedgerEntryNotFoundError,
    ValidationError,
)
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.i_balance_cache import IBalanceCache
from tresorier.domain.services.i_event_publisher import IEventPublisher
from tresorier.domain.services.i_lock_manager import ILockManager
from tresorier.infrastructure.gateways.webhook_signature import verify_signature
from tresorier.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


class VerifyCheckoutPayment:
    """
    Credit a recharge from a signed checkout response.

    Business rules:
    - Signature is HMAC-SHA256 of "order_id|payment_id" under the API key
      secret, checked before anything is read
    - Only the caller's own pending order can be credited, for the
      amount the order was opened with
    - Idempotent on the payment id; the webhook for the same payment
      becomes a duplicate
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        locks: ILockManager,
        event_publisher: IEventPublisher,
        key_secret: Optional[str],
        balance_cache: Optional[IBalanceCache] = None,
    ):
        if not key_secret:
            raise GatewayError("Checkout verification is not configured")
        self.uow = uow
        self.key_secret = key_secret
        self.record_deposit = RecordDeposit(uow, locks, event_publisher, balance_cache)

    async def execute(
        self,
        account: Account,
        order_id: str,
        payment_id: str,
        signature: Optional[str],
    ) -> DepositResult:
        """
        Execute verification.

        Raises:
            ValidationError: Order or payment id missing
            InvalidSignatureError: Signature missing or wrong
            LedgerEntryNotFoundError: No recharge order for the caller
            ConflictError: Order already paid by another payment
        """
        order_id = (order_id or "").strip()
        payment_id = (payment_id or "").strip()
        if not order_id or not payment_id:
            raise ValidationError("razorpay_order_id", "Order and payment ids are required")

        verify_signature(
            self.key_secret, f"{order_id}|{payment_id}".encode("utf-8"), signature
        )

        order_entry = await self.uow.ledger.get_by_reference(order_id)
        if (
            order_entry is None
            or order_entry.account_id != account.id
            or order_entry.kind != EntryKind.DEPOSIT
        ):
            raise LedgerEntryNotFoundError(order_id)

        result = await self.record_deposit.execute(
            account_id=account.id,
            amount=order_entry.amount,
            gateway_reference=payment_id,
            description=f"Wallet recharge via Razorpay - Payment {payment_id}",
            metadata={
                "gateway": "razorpay",
                ORDER_ID_KEY: order_id,
                "verified_via": "checkout",
            },
            order_id=order_id,
        )

        logger.info(
            "Checkout payment verified",
            extra={
                "account_id": str(account.id),
                "entry_id": str(result.entry.id),
                "order_id": order_id,
                "duplicate": result.duplicate,
            },
        )
        return result
