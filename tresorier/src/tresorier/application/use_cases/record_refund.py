"""
Record Refund use case.

Credits a customer's wallet when a booking payment is refunded.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from uuid import UUID

from tresorier.application.amounts import parse_positive_amount
from tresorier.domain.entities.ledger_entry import EntryKind, LedgerEntry
from tresorier.domain.exceptions import (
    ConflictError,
    DuplicateReferenceError,
    ValidationError,
)
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.balance_calculator import BalanceCalculator
from tresorier.domain.services.i_balance_cache import IBalanceCache
from tresorier.domain.services.i_lock_manager import ILockManager, account_key
from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.monitoring.metrics import ledger_entries_total

logger = get_logger(__name__)


@dataclass
class RefundResult:
    """Refund entry and whether the call was a replay."""

    entry: LedgerEntry
    duplicate: bool = False


class RecordRefund:
    """
    Append a completed refund credit.

    Business rules:
    - Idempotent by reference (one refund per reference)
    - Amount must be positive
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        locks: ILockManager,
        balance_cache: Optional[IBalanceCache] = None,
    ):
        self.uow = uow
        self.locks = locks
        self.balance_calculator = BalanceCalculator(uow.ledger, balance_cache)

    async def execute(
        self,
        account_id: UUID,
        amount: Decimal | str,
        reference: str,
        booking_id: Optional[str] = None,
        description: str = "Booking refund",
    ) -> RefundResult:
        """
        Execute refund.

        Raises:
            InvalidAmountError: If amount is not positive
            ValidationError: If reference missing
            ConflictError: If reference is used by a different entry
        """
        value = parse_positive_amount(amount)
        reference = (reference or "").strip()
        if not reference:
            raise ValidationError("reference", "Reference is required")

        async with self.locks.hold(account_key(account_id)):
            existing = await self.uow.ledger.get_by_reference(reference)
            if existing is not None:
                return self._replay(existing, account_id)

            await self.uow.ledger.lock_account(account_id)
            entry = LedgerEntry(
                account_id=account_id,
                amount=value,
                kind=EntryKind.REFUND,
                reference=reference,
                related_booking_id=booking_id,
                description=description,
            )

            try:
                saved = await self.uow.ledger.append(entry)
                await self.uow.commit()
            except DuplicateReferenceError:
                await self.uow.rollback()
                existing = await self.uow.ledger.get_by_reference(reference)
                return self._replay(existing, account_id)

        await self.balance_calculator.invalidate(account_id)
        ledger_entries_total.labels(kind="refund", status=saved.status.value).inc()
        logger.info(
            "Refund recorded",
            extra={"account_id": str(account_id), "entry_id": str(saved.id)},
        )

        return RefundResult(entry=saved)

    @staticmethod
    def _replay(existing: LedgerEntry, account_id: UUID) -> RefundResult:
        if existing.account_id != account_id or existing.kind != EntryKind.REFUND:
            raise ConflictError(
                f"Reference {existing.reference} already used by another entry"
            )
        return RefundResult(entry=existing, duplicate=True)
