"""
Settle Withdrawal use case.

Moves a pending withdrawal to completed or failed. Called after a gateway
answer, by payout webhooks, and by operators for manual payouts.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from tresorier.domain.entities.ledger_entry import EntryKind, EntryStatus, LedgerEntry
from tresorier.domain.exceptions import (
    LedgerEntryNotFoundError,
    ValidationError,
)
from tresorier.domain.repositories.i_ledger_repository import ILedgerRepository
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.balance_calculator import BalanceCalculator
from tresorier.domain.services.i_balance_cache import IBalanceCache
from tresorier.domain.services.i_event_publisher import (
    WITHDRAWAL_COMPLETED,
    WITHDRAWAL_FAILED,
    IEventPublisher,
)
from tresorier.domain.services.i_lock_manager import ILockManager, account_key
from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.monitoring.metrics import (
    ledger_transitions_total,
    withdrawals_pending,
    withdrawals_total,
)

logger = get_logger(__name__)


class SettleWithdrawal:
    """
    Finish a pending withdrawal.

    Business rules:
    - Only PENDING withdrawals can be settled
    - Completed keeps the debit, failed releases the reserved funds
    - With allow_settled, repeating the outcome already recorded is a
      no-op (webhooks are delivered at least once)
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
            balance_cache: Cache invalidated after settlement
        """
        self.uow = uow
        self.locks = locks
        self.event_publisher = event_publisher
        self.balance_calculator = BalanceCalculator(uow.ledger, balance_cache)

    async def execute(
        self,
        entry_id: UUID,
        outcome: EntryStatus,
        failure_reason: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        allow_settled: bool = False,
    ) -> LedgerEntry:
        """
        Execute settlement.

        Args:
            entry_id: Withdrawal entry
            outcome: COMPLETED or FAILED
            failure_reason: Recorded on failed entries
            metadata: Extra keys merged into the entry (payout id, operator)
            allow_settled: Treat a repeat of the recorded outcome as success

        Returns:
            Settled LedgerEntry

        Raises:
            LedgerEntryNotFoundError: Unknown entry
            ValidationError: Entry is not a withdrawal
            InvalidStateTransitionError: Entry not pending
        """
        outcome = EntryStatus(outcome)

        entry = await self.uow.ledger.get_by_id(entry_id)
        if entry is None:
            raise LedgerEntryNotFoundError(str(entry_id))
        if entry.kind != EntryKind.WITHDRAWAL:
            raise ValidationError("entry_id", "Entry is not a withdrawal")

        extra = dict(metadata or {})
        if outcome == EntryStatus.FAILED:
            extra["failure_reason"] = failure_reason or "failed"

        async with self.locks.hold(account_key(entry.account_id)):
            await self.uow.ledger.lock_account(entry.account_id)
            current = await self.uow.ledger.get_by_id(entry_id)
            if allow_settled and current.status == outcome:
                return current

            settled = await self.uow.ledger.transition(entry_id, outcome, extra)
            await self.uow.commit()

        await self.balance_calculator.invalidate(settled.account_id)

        mode = settled.metadata.get("mode", "gateway")
        withdrawals_total.labels(mode=mode, outcome=outcome.value).inc()
        ledger_transitions_total.labels(kind="withdrawal", status=outcome.value).inc()
        withdrawals_pending.dec()
        logger.info(
            f"Withdrawal {outcome.value}",
            extra={
                "entry_id": str(entry_id),
                "account_id": str(settled.account_id),
                "failure_reason": settled.metadata.get("failure_reason"),
            },
        )

        await self.event_publisher.publish(
            WITHDRAWAL_COMPLETED if outcome == EntryStatus.COMPLETED else WITHDRAWAL_FAILED,
            {
                "account_id": str(settled.account_id),
                "entry_id": str(settled.id),
                "amount": str(-settled.amount),
                "failure_reason": settled.metadata.get("failure_reason"),
            },
        )
        return settled


class ListPendingWithdrawals:
    """Operator queue of withdrawals awaiting settlement, oldest first."""

    def __init__(self, ledger_repository: ILedgerRepository):
        self.ledger_repository = ledger_repository

    async def execute(self, offset: int = 0, limit: int = 50) -> List[LedgerEntry]:
        if offset < 0 or not 1 <= limit <= 100:
            raise ValidationError("limit", "Limit must be 1..100, offset >= 0")
        return await self.ledger_repository.list_pending_withdrawals(
            offset=offset, limit=limit
        )
