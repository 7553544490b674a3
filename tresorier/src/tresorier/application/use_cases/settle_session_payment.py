"""
Settle Session Payment use case.

Moves the price of a completed design session from the customer's wallet
to the designer's earnings in one transaction.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from uuid import UUID

from tresorier.application.amounts import parse_positive_amount
from tresorier.domain.entities.ledger_entry import (
    EARNINGS_TYPE_KEY,
    SESSION_COMPLETION,
    EntryKind,
    EntryStatus,
    LedgerEntry,
)
from tresorier.domain.exceptions import (
    DuplicateReferenceError,
    InsufficientBalanceError,
    ValidationError,
)
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.balance_calculator import BalanceCalculator
from tresorier.domain.services.i_balance_cache import IBalanceCache
from tresorier.domain.services.i_event_publisher import (
    SESSION_SETTLED,
    IEventPublisher,
)
from tresorier.domain.services.i_lock_manager import ILockManager, account_key
from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.monitoring.metrics import ledger_entries_total

logger = get_logger(__name__)


def session_payment_reference(session_id: str) -> str:
    return f"SESSION_{session_id}"


def session_earning_reference(session_id: str) -> str:
    return f"SESSION_{session_id}_EARNING"


@dataclass
class SessionSettlementResult:
    """
    Entries written for a settled session.

    Attributes:
        payment: Customer debit
        earning: Designer credit
        duplicate: True when the session was already settled
    """

    payment: LedgerEntry
    earning: LedgerEntry
    duplicate: bool = False


class SettleSessionPayment:
    """
    Charge a customer and credit the designer for one session.

    Business rules:
    - Idempotent per session id
    - Customer must have the full amount in withdrawable wallet funds
    - Both entries commit together or not at all
    - Designer credit counts towards available earnings
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        locks: ILockManager,
        event_publisher: IEventPublisher,
        balance_cache: Optional[IBalanceCache] = None,
    ):
        self.uow = uow
        self.locks = locks
        self.event_publisher = event_publisher
        self.balance_calculator = BalanceCalculator(uow.ledger, balance_cache)

    async def execute(
        self,
        session_id: str,
        customer_id: UUID,
        designer_id: UUID,
        amount: Decimal | str,
    ) -> SessionSettlementResult:
        """
        Execute settlement.

        Args:
            session_id: Booking/session identifier
            customer_id: Paying account
            designer_id: Earning account
            amount: Session price

        Returns:
            SessionSettlementResult

        Raises:
            ValidationError: Missing session id or same payer and payee
            InvalidAmountError: Amount not positive
            InsufficientBalanceError: Customer cannot cover the price
        """
        # 1. Validate input
        value = parse_positive_amount(amount)
        session_id = (session_id or "").strip()
        if not session_id:
            raise ValidationError("session_id", "Session id is required")
        if customer_id == designer_id:
            raise ValidationError("designer_id", "Customer and designer must differ")

        payment_ref = session_payment_reference(session_id)
        earning_ref = session_earning_reference(session_id)

        async with self.locks.hold_many(
            [account_key(customer_id), account_key(designer_id)]
        ):
            # 2. Replay check
            replay = await self._existing(payment_ref, earning_ref)
            if replay is not None:
                return replay

            # 3. Lock both rows in a stable order
            for account_id in sorted([customer_id, designer_id], key=str):
                await self.uow.ledger.lock_account(account_id)

            # 4. Balance check against the store
            snapshot = await self.balance_calculator.get_snapshot(
                customer_id, use_cache=False
            )
            available = snapshot.wallet_balance + snapshot.total_pending_debits
            if available < value:
                raise InsufficientBalanceError(required=value, available=available)

            # 5. Write both legs
            payment = LedgerEntry(
                account_id=customer_id,
                amount=-value,
                kind=EntryKind.PAYMENT,
                status=EntryStatus.COMPLETED,
                reference=payment_ref,
                related_booking_id=session_id,
                description="Design session payment",
                metadata={"payment_type": SESSION_COMPLETION},
            )
            earning = LedgerEntry(
                account_id=designer_id,
                amount=value,
                kind=EntryKind.DEPOSIT,
                reference=earning_ref,
                related_booking_id=session_id,
                description="Design session earnings",
                metadata={EARNINGS_TYPE_KEY: SESSION_COMPLETION},
            )

            try:
                payment = await self.uow.ledger.append(payment)
                earning = await self.uow.ledger.append(earning)
                await self.uow.commit()
            except DuplicateReferenceError:
                await self.uow.rollback()
                replay = await self._existing(payment_ref, earning_ref)
                if replay is None:
                    raise
                return replay

        # 6. Side effects
        await self.balance_calculator.invalidate(customer_id, designer_id)
        ledger_entries_total.labels(kind="payment", status="completed").inc()
        ledger_entries_total.labels(kind="deposit", status="completed").inc()
        logger.info(
            "Session settled",
            extra={"session_id": session_id, "amount": str(value)},
        )
        await self.event_publisher.publish(
            SESSION_SETTLED,
            {
                "session_id": session_id,
                "customer_id": str(customer_id),
                "designer_id": str(designer_id),
                "amount": str(value),
            },
        )

        return SessionSettlementResult(payment=payment, earning=earning)

    async def _existing(
        self, payment_ref: str, earning_ref: str
    ) -> Optional[SessionSettlementResult]:
        payment = await self.uow.ledger.get_by_reference(payment_ref)
        if payment is None:
            return None
        earning = await self.uow.ledger.get_by_reference(earning_ref)
        return SessionSettlementResult(payment=payment, earning=earning, duplicate=True)
