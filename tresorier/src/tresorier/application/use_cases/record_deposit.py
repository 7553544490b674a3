"""
Record Deposit use case.

Credits a wallet after the payment gateway captured a payment.
CRITICAL: Idempotent on the gateway reference; callbacks are retried.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional
from uuid import UUID

from tresorier.application.amounts import parse_positive_amount
from tresorier.domain.entities.ledger_entry import EntryKind, EntryStatus, LedgerEntry
from tresorier.domain.exceptions import (
    ConflictError,
    DuplicateReferenceError,
    ValidationError,
)
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.balance_calculator import BalanceCalculator
from tresorier.domain.services.i_balance_cache import IBalanceCache
from tresorier.domain.services.i_event_publisher import (
    DEPOSIT_RECORDED,
    IEventPublisher,
)
from tresorier.domain.services.i_lock_manager import ILockManager, account_key
from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.monitoring.metrics import (
    deposits_duplicate_total,
    ledger_entries_total,
)

logger = get_logger(__name__)

PAYMENT_ID_KEY = "razorpay_payment_id"


@dataclass
class DepositResult:
    """
    Outcome of a deposit call.

    Attributes:
        entry: The deposit entry (original one on replays)
        duplicate: True when the reference had already been recorded
    """

    entry: LedgerEntry
    duplicate: bool = False


class RecordDeposit:
    """
    Append a completed deposit for a captured payment.

    Business rules:
    - Amount must be positive with at most two decimals
    - Gateway reference is required and unique across the ledger
    - A replayed reference returns the original entry unchanged
    - A reference already used by another account is a conflict
    - A payment for a checkout order completes that order's pending
      entry instead of adding a second credit; the payment id is kept on
      the entry so a repeat is recognised
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        locks: ILockManager,
        event_publisher: IEventPublisher,
        balance_cache: Optional[IBalanceCache] = None,
    ):
        """
        Initialize use case with dependencies.

        Args:
            uow: Unit of work for the request
            locks: Per-account lock manager
            event_publisher: Domain event sink
            balance_cache: Cache invalidated after the credit
        """
        self.uow = uow
        self.locks = locks
        self.event_publisher = event_publisher
        self.balance_calculator = BalanceCalculator(uow.ledger, balance_cache)

    async def execute(
        self,
        account_id: UUID,
        amount: Decimal | str,
        gateway_reference: str,
        description: str = "Wallet recharge",
        metadata: Optional[Dict[str, Any]] = None,
        order_id: Optional[str] = None,
    ) -> DepositResult:
        """
        Execute deposit.

        Args:
            account_id: Account to credit
            amount: Major-unit amount
            gateway_reference: Payment id from the gateway
            description: Human-readable label
            metadata: Extra gateway details kept on the entry
            order_id: Checkout order the payment was made against

        Returns:
            DepositResult

        Raises:
            InvalidAmountError: If amount is not positive
            ValidationError: If amount or reference is malformed
            ConflictError: If the reference belongs to another account, or
                the order was paid by another payment
        """
        # 1. Validate input
        value = parse_positive_amount(amount)
        reference = (gateway_reference or "").strip()
        if not reference:
            raise ValidationError("gateway_reference", "Reference is required")

        async with self.locks.hold(account_key(account_id)):
            # 2. Lookup first: replays are the common duplicate path
            existing = await self.uow.ledger.get_by_reference(reference)
            if existing is not None:
                return self._duplicate(existing, account_id)

            await self.uow.ledger.lock_account(account_id)

            # 3a. Payment for a checkout order completes the order's entry
            order_result = None
            if order_id:
                order_result = await self._complete_order(
                    order_id, account_id, value, reference, metadata
                )
                if order_result is not None and order_result.duplicate:
                    return order_result

            if order_result is not None:
                saved = order_result.entry
            else:
                # 3b. Append completed deposit
                entry = LedgerEntry(
                    account_id=account_id,
                    amount=value,
                    kind=EntryKind.DEPOSIT,
                    reference=reference,
                    description=description,
                    metadata=dict(metadata or {}),
                )

                try:
                    saved = await self.uow.ledger.append(entry)
                    await self.uow.commit()
                except DuplicateReferenceError:
                    # Lost the race to a concurrent callback in another process
                    await self.uow.rollback()
                    existing = await self.uow.ledger.get_by_reference(reference)
                    return self._duplicate(existing, account_id)

        # 4. Side effects after commit
        await self.balance_calculator.invalidate(account_id)
        ledger_entries_total.labels(kind="deposit", status=saved.status.value).inc()
        logger.info(
            "Deposit recorded",
            extra={
                "account_id": str(account_id),
                "entry_id": str(saved.id),
                "amount": str(saved.amount),
            },
        )
        await self.event_publisher.publish(
            DEPOSIT_RECORDED,
            {
                "account_id": str(account_id),
                "entry_id": str(saved.id),
                "amount": str(saved.amount),
                "reference": reference,
            },
        )

        return DepositResult(entry=saved)

    def _duplicate(self, existing: LedgerEntry, account_id: UUID) -> DepositResult:
        if existing.account_id != account_id or existing.kind != EntryKind.DEPOSIT:
            raise ConflictError(
                f"Reference {existing.reference} already used by another entry"
            )

        deposits_duplicate_total.inc()
        logger.info(
            "Duplicate deposit ignored",
            extra={"entry_id": str(existing.id), "reference": existing.reference},
        )
        return DepositResult(entry=existing, duplicate=True)

    async def _complete_order(
        self,
        order_id: str,
        account_id: UUID,
        value: Decimal,
        payment_id: str,
        metadata: Optional[Dict[str, Any]],
    ) -> Optional[DepositResult]:
        """
        Complete the pending entry opened for a checkout order.

        Returns None when no entry was opened for the order, so the payment
        is credited as a standalone deposit.
        """
        order_entry = await self.uow.ledger.get_by_reference(order_id)
        if order_entry is None:
            return None

        if order_entry.account_id != account_id or order_entry.kind != EntryKind.DEPOSIT:
            raise ConflictError(f"Order {order_id} belongs to another entry")
        if order_entry.status == EntryStatus.COMPLETED:
            if order_entry.metadata.get(PAYMENT_ID_KEY) == payment_id:
                return self._duplicate(order_entry, account_id)
            raise ConflictError(f"Order {order_id} was already paid")
        if order_entry.status == EntryStatus.FAILED:
            raise ConflictError(f"Order {order_id} is closed")
        if order_entry.amount != value:
            raise ValidationError(
                "amount", f"Payment amount does not match order {order_id}"
            )

        saved = await self.uow.ledger.transition(
            order_entry.id,
            EntryStatus.COMPLETED,
            {**(metadata or {}), PAYMENT_ID_KEY: payment_id},
        )
        await self.uow.commit()
        return DepositResult(entry=saved)
