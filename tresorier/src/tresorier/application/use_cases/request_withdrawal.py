"""
Request Withdrawal use case.

Reserves funds with a pending ledger entry, then pays out through the
gateway (or leaves the entry for an operator in manual mode).
CRITICAL: Checks and reservation happen under the account lock; the
gateway call happens after the reservation commits.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple
from uuid import UUID

from tresorier.application.amounts import parse_positive_amount
from tresorier.application.ownership import load_owned_bank_account
from tresorier.application.use_cases.settle_withdrawal import SettleWithdrawal
from tresorier.domain.entities.account import Account
from tresorier.domain.entities.bank_account import BankAccount
from tresorier.domain.entities.ledger_entry import (
    SOURCE_KEY,
    EntryKind,
    EntryStatus,
    LedgerEntry,
)
from tresorier.domain.exceptions import (
    AccountNotVerifiedError,
    ConflictError,
    DuplicateReferenceError,
    GatewayDeclinedError,
    GatewayError,
    GatewayTimeoutError,
    InsufficientBalanceError,
    OutOfBoundsError,
    ValidationError,
)
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.balance_calculator import BalanceCalculator
from tresorier.domain.services.i_balance_cache import IBalanceCache
from tresorier.domain.services.i_event_publisher import (
    WITHDRAWAL_REQUESTED,
    IEventPublisher,
)
from tresorier.domain.services.i_lock_manager import ILockManager, account_key
from tresorier.domain.services.i_payout_gateway import (
    IPayoutGateway,
    PayoutRequest,
    PayoutStatus,
)
from tresorier.infrastructure.monitoring.logger import get_logger, log_performance
from tresorier.infrastructure.monitoring.metrics import (
    ledger_entries_total,
    withdrawals_pending,
    withdrawals_total,
)

logger = get_logger(__name__)

MODE_GATEWAY = "gateway"
MODE_MANUAL = "manual"

MAX_IDEMPOTENCY_KEY_LENGTH = 64


@dataclass
class WithdrawalResult:
    """
    Outcome of a withdrawal request.

    Attributes:
        entry: Withdrawal entry in its latest state
        mode: gateway or manual
        replayed: True when the idempotency key matched an earlier request
    """

    entry: LedgerEntry
    mode: str
    replayed: bool = False


class RequestWithdrawal:
    """
    Withdraw funds to a verified bank account.

    Business rules (checked in this order, all before any gateway call):
    1. Amount must be positive
    2. Amount within [min_amount, max_amount], both inclusive
    3. Withdrawable balance (wallet for customers, earnings for
       designers, minus pending holds) covers the amount
    4. Bank account exists, is owned by the caller and is verified

    Outcomes:
    - Gateway success: entry completed with the payout id
    - Gateway accepted but processing: entry stays pending until webhook
    - Decline or gateway error: entry failed, funds released, error raised
    - Timeout: entry stays pending with funds reserved and timeout=True,
      timeout raised. A payout webhook settles it; a replay with the same
      idempotency key resends the transfer under the same gateway key.
    - Manual mode: entry stays pending for an operator
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        locks: ILockManager,
        payout_gateway: IPayoutGateway,
        event_publisher: IEventPublisher,
        balance_cache: Optional[IBalanceCache] = None,
        min_amount: Decimal = Decimal("100"),
        max_amount: Decimal = Decimal("50000"),
        mode: str = MODE_GATEWAY,
        manual_threshold: Optional[Decimal] = None,
    ):
        """
        Initialize use case with dependencies.

        Args:
            uow: Unit of work for the request
            locks: Per-account lock manager
            payout_gateway: Outbound transfer gateway
            event_publisher: Domain event sink
            balance_cache: Cache invalidated after each mutation
            min_amount: Smallest withdrawal (inclusive)
            max_amount: Largest withdrawal (inclusive)
            mode: gateway or manual
            manual_threshold: Amounts above this always go manual
        """
        self.uow = uow
        self.locks = locks
        self.payout_gateway = payout_gateway
        self.event_publisher = event_publisher
        self.balance_calculator = BalanceCalculator(uow.ledger, balance_cache)
        self.settle_withdrawal = SettleWithdrawal(
            uow, locks, event_publisher, balance_cache
        )
        self.min_amount = min_amount
        self.max_amount = max_amount
        self.mode = mode
        self.manual_threshold = manual_threshold

    async def execute(
        self,
        account: Account,
        amount: Decimal | str,
        bank_account_id: UUID,
        purpose: str = "payout",
        idempotency_key: Optional[str] = None,
    ) -> WithdrawalResult:
        """
        Execute withdrawal.

        Args:
            account: Authenticated caller
            amount: Major-unit amount
            bank_account_id: Destination
            purpose: Gateway payout purpose
            idempotency_key: Client key; a repeat returns the first result

        Returns:
            WithdrawalResult

        Raises:
            InvalidAmountError: Amount not positive
            OutOfBoundsError: Amount outside limits
            InsufficientBalanceError: Not enough withdrawable funds
            BankAccountNotFoundError: Missing or not owned
            AccountNotVerifiedError: Bank account not verified
            GatewayDeclinedError / GatewayError: Payout failed (entry failed)
            GatewayTimeoutError: Gateway did not answer (entry kept pending)
        """
        # 1. Amount
        value = parse_positive_amount(amount)

        # 2. Bounds
        if value < self.min_amount or value > self.max_amount:
            raise OutOfBoundsError(value, self.min_amount, self.max_amount)

        reference = self._reference(account.id, idempotency_key)

        replay: Optional[WithdrawalResult] = None
        async with self.locks.hold(account_key(account.id)):
            if reference is not None:
                replay = await self._replay(account.id, reference)
            if replay is None:
                try:
                    entry, bank_account = await self._reserve(
                        account, value, bank_account_id, purpose, reference
                    )
                except DuplicateReferenceError:
                    await self.uow.rollback()
                    replay = await self._replay(account.id, reference)
                    if replay is None:
                        raise

        if replay is not None:
            return await self._resume(replay, purpose)

        mode = entry.metadata["mode"]
        await self.balance_calculator.invalidate(account.id)
        ledger_entries_total.labels(kind="withdrawal", status="pending").inc()
        withdrawals_pending.inc()
        logger.info(
            "Withdrawal reserved",
            extra={
                "entry_id": str(entry.id),
                "account_id": str(account.id),
                "amount": str(value),
                "mode": mode,
            },
        )
        await self.event_publisher.publish(
            WITHDRAWAL_REQUESTED,
            {
                "account_id": str(account.id),
                "entry_id": str(entry.id),
                "amount": str(value),
                "mode": mode,
            },
        )

        # 6b. Manual payouts wait for an operator
        if mode == MODE_MANUAL:
            withdrawals_total.labels(mode=mode, outcome="queued").inc()
            return WithdrawalResult(entry=entry, mode=mode)

        # 6a. Gateway payout, outside the reservation transaction
        settled = await self._dispatch(entry, bank_account, purpose)
        return WithdrawalResult(entry=settled, mode=mode)

    async def _reserve(
        self,
        account: Account,
        value: Decimal,
        bank_account_id: UUID,
        purpose: str,
        reference: Optional[str],
    ) -> Tuple[LedgerEntry, BankAccount]:
        """Run checks 3 and 4 and commit the pending entry. Caller holds the lock."""
        await self.uow.ledger.lock_account(account.id)

        # 3. Balance, read from the store inside the locked transaction
        withdrawable = await self.balance_calculator.get_withdrawable_balance(
            account, use_cache=False
        )
        if withdrawable < value:
            raise InsufficientBalanceError(required=value, available=withdrawable)

        # 4. Destination, row-locked so routing cannot change underneath
        bank_account = await load_owned_bank_account(
            self.uow.bank_accounts, account.id, bank_account_id, for_update=True
        )
        if not bank_account.is_verified:
            raise AccountNotVerifiedError(str(bank_account_id))

        # 5. Reserve
        entry = LedgerEntry(
            account_id=account.id,
            amount=-value,
            kind=EntryKind.WITHDRAWAL,
            bank_account_id=bank_account_id,
            reference=reference,
            description=f"Withdrawal to {bank_account.bank_name} "
            f"****{bank_account.last4}",
            metadata={
                SOURCE_KEY: account.withdrawal_source.value,
                "mode": self._select_mode(value),
                "purpose": purpose,
                "user_type": account.role.value,
                "requested_amount": str(value),
                "bank_details": bank_account.masked_account_number,
                "ifsc": bank_account.ifsc_code,
                "account_last4": bank_account.last4,
            },
        )
        entry = await self.uow.ledger.append(entry)
        await self.uow.commit()
        return entry, bank_account

    async def _dispatch(
        self, entry: LedgerEntry, bank_account: BankAccount, purpose: str
    ) -> LedgerEntry:
        # The entry id is the gateway idempotency key, so a resend after a
        # timeout cannot create a second payout.
        request = PayoutRequest(
            amount_minor=-entry.amount_minor,
            account_number=bank_account.account_number,
            ifsc_code=bank_account.ifsc_code,
            account_holder_name=bank_account.account_holder_name,
            idempotency_key=str(entry.id),
            purpose=purpose,
            narration="Tresorier withdrawal",
            notes={"entry_id": str(entry.id), "account_id": str(entry.account_id)},
        )

        try:
            with log_performance(logger, "payout.transfer", entry_id=str(entry.id)):
                result = await self.payout_gateway.transfer(request)
        except GatewayTimeoutError as e:
            await self._hold_after_timeout(entry, e)
            raise
        except GatewayDeclinedError as e:
            await self._fail(entry, e.reason, e)
            raise
        except GatewayError as e:
            await self._fail(entry, "gateway_error", e)
            raise

        if result.status == PayoutStatus.PROCESSED:
            return await self.settle_withdrawal.execute(
                entry.id,
                EntryStatus.COMPLETED,
                metadata={"payout_id": result.reference_id},
                allow_settled=True,
            )

        if result.status == PayoutStatus.FAILED:
            reason = result.failure_reason or "payout_failed"
            error = GatewayDeclinedError(reason)
            await self._fail(entry, reason, error, payout_id=result.reference_id)
            raise error

        # Accepted, final status arrives by webhook
        logger.info(
            "Payout processing",
            extra={"entry_id": str(entry.id), "payout_id": result.reference_id},
        )
        return entry

    async def _hold_after_timeout(
        self, entry: LedgerEntry, error: GatewayTimeoutError
    ) -> None:
        """
        Keep the reservation after a timeout.

        The transfer may still have gone through, so releasing the funds
        here could pay out twice. The entry stays pending until a payout
        webhook settles it or a replay resends the same transfer.
        """
        await self.uow.ledger.annotate(
            entry.id,
            {"timeout": True, "dispatch_error": "timeout", "payout_status": "unknown"},
        )
        await self.uow.commit()
        error.details = {
            **error.details,
            "entry_id": str(entry.id),
            "status": EntryStatus.PENDING.value,
        }
        logger.warning(
            "Payout timed out, reservation kept until the outcome is known",
            extra={"entry_id": str(entry.id), "account_id": str(entry.account_id)},
        )

    async def _resume(self, replay: WithdrawalResult, purpose: str) -> WithdrawalResult:
        """Resend a timed-out gateway payout, otherwise return the replay as is."""
        entry = replay.entry
        if (
            replay.mode != MODE_GATEWAY
            or entry.status != EntryStatus.PENDING
            or not entry.metadata.get("timeout")
        ):
            return replay

        bank_account = await load_owned_bank_account(
            self.uow.bank_accounts, entry.account_id, entry.bank_account_id
        )
        logger.info(
            "Resending timed-out payout",
            extra={"entry_id": str(entry.id), "account_id": str(entry.account_id)},
        )
        settled = await self._dispatch(
            entry, bank_account, entry.metadata.get("purpose", purpose)
        )
        return WithdrawalResult(entry=settled, mode=replay.mode, replayed=True)

    async def _fail(
        self,
        entry: LedgerEntry,
        reason: str,
        error: GatewayError,
        payout_id: Optional[str] = None,
    ) -> None:
        metadata = {"payout_id": payout_id} if payout_id else None
        await self.settle_withdrawal.execute(
            entry.id, EntryStatus.FAILED, failure_reason=reason, metadata=metadata
        )
        error.details = {**error.details, "entry_id": str(entry.id)}
        logger.warning(
            "Withdrawal payout failed",
            extra={"entry_id": str(entry.id), "failure_reason": reason},
        )

    def _select_mode(self, value: Decimal) -> str:
        if self.mode == MODE_MANUAL:
            return MODE_MANUAL
        if self.manual_threshold is not None and value > self.manual_threshold:
            return MODE_MANUAL
        return MODE_GATEWAY

    @staticmethod
    def _reference(account_id: UUID, idempotency_key: Optional[str]) -> Optional[str]:
        if idempotency_key is None:
            return None
        key = idempotency_key.strip()
        if not key or len(key) > MAX_IDEMPOTENCY_KEY_LENGTH:
            raise ValidationError(
                "idempotency_key",
                f"Must be 1..{MAX_IDEMPOTENCY_KEY_LENGTH} characters",
            )
        return f"WD_{account_id.hex}_{key}"

    async def _replay(
        self, account_id: UUID, reference: str
    ) -> Optional[WithdrawalResult]:
        existing = await self.uow.ledger.get_by_reference(reference)
        if existing is None:
            return None
        if existing.account_id != account_id or existing.kind != EntryKind.WITHDRAWAL:
            raise ConflictError("Idempotency key already used")
        return WithdrawalResult(
            entry=existing,
            mode=existing.metadata.get("mode", MODE_GATEWAY),
            replayed=True,
        )
