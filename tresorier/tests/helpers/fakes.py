"""
In-memory test doubles for repositories and external services.

Repositories share one InMemoryStore so several units of work (one per
simulated request) see the same data. Writes go straight to the store;
commit and rollback only count calls. Every read yields to the event loop
once, so concurrent use cases interleave the way they would against a
real database.
"""

import asyncio
import copy
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from tresorier.application.use_cases import (
    AddBankAccount,
    AutoVerifyBankAccount,
    ConfirmPennyDrop,
    CreateRechargeOrder,
    GetBalances,
    InitiateOtp,
    InitiatePennyDrop,
    ListTransactions,
    ProcessPaymentWebhook,
    RecordDeposit,
    RecordRefund,
    RemoveBankAccount,
    RequestWithdrawal,
    ResetVerification,
    SetPrimaryBankAccount,
    SettleSessionPayment,
    SettleWithdrawal,
    UpdateBankAccount,
    VerifyCheckoutPayment,
    VerifyOtp,
)
from tresorier.domain.entities.account import Account, AccountRole
from tresorier.domain.entities.bank_account import BankAccount, VerificationMethod
from tresorier.domain.entities.ledger_entry import (
    EntryKind,
    EntryStatus,
    LedgerEntry,
    SubLedger,
)
from tresorier.domain.entities.verification_attempt import VerificationAttempt
from tresorier.domain.exceptions import (
    BankAccountNotFoundError,
    DuplicateReferenceError,
    LedgerEntryNotFoundError,
)
from tresorier.domain.repositories.i_bank_account_repository import (
    IBankAccountRepository,
)
from tresorier.domain.repositories.i_ledger_repository import ILedgerRepository
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.repositories.i_verification_attempt_repository import (
    IVerificationAttemptRepository,
)
from tresorier.domain.services.i_bank_verification_service import (
    BankLookupResult,
    IBankVerificationService,
)
from tresorier.domain.services.i_otp_dispatcher import IOtpDispatcher
from tresorier.domain.services.i_payout_gateway import (
    IPayoutGateway,
    PayoutRequest,
    PayoutResult,
    PayoutStatus,
)
from tresorier.domain.value_objects import from_minor, utc_now
from tresorier.infrastructure.cache.memory_balance_cache import MemoryBalanceCache
from tresorier.infrastructure.concurrency.keyed_lock_manager import KeyedLockManager
from tresorier.infrastructure.event_bus.logging_event_publisher import (
    LoggingEventPublisher,
)
from tresorier.infrastructure.gateways.simulated_order_gateway import (
    SimulatedOrderGateway,
)

WEBHOOK_SECRET = "test-webhook-secret"
OTP_SECRET = "test-otp-secret"
CHECKOUT_KEY_ID = "rzp_test_key"
CHECKOUT_SECRET = "test-key-secret"


# ================================================================
# Repositories
# ================================================================


@dataclass
class InMemoryStore:
    """Tables shared by all in-memory repositories."""

    entries: Dict[UUID, LedgerEntry] = field(default_factory=dict)
    bank_accounts: Dict[UUID, BankAccount] = field(default_factory=dict)
    attempts: Dict[UUID, VerificationAttempt] = field(default_factory=dict)
    locked_accounts: List[UUID] = field(default_factory=list)


class InMemoryLedgerRepository(ILedgerRepository):
    """Dict-backed ledger store."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def append(self, entry: LedgerEntry) -> LedgerEntry:
        await asyncio.sleep(0)
        if entry.reference is not None and any(
            e.reference == entry.reference for e in self.store.entries.values()
        ):
            raise DuplicateReferenceError(entry.reference)
        self.store.entries[entry.id] = copy.deepcopy(entry)
        return copy.deepcopy(entry)

    async def get_by_id(self, entry_id: UUID) -> Optional[LedgerEntry]:
        await asyncio.sleep(0)
        entry = self.store.entries.get(entry_id)
        return copy.deepcopy(entry) if entry else None

    async def get_by_reference(self, reference: str) -> Optional[LedgerEntry]:
        await asyncio.sleep(0)
        for entry in self.store.entries.values():
            if entry.reference == reference:
                return copy.deepcopy(entry)
        return None

    async def transition(
        self,
        entry_id: UUID,
        new_status: EntryStatus,
        metadata: Optional[Dict[str, Any]] = None,
        reference: Optional[str] = None,
    ) -> LedgerEntry:
        await asyncio.sleep(0)
        entry = self.store.entries.get(entry_id)
        if entry is None:
            raise LedgerEntryNotFoundError(str(entry_id))
        entry.transition(new_status, metadata)
        if reference and not entry.reference:
            entry.reference = reference
        return copy.deepcopy(entry)

    async def annotate(self, entry_id: UUID, metadata: Dict[str, Any]) -> LedgerEntry:
        await asyncio.sleep(0)
        entry = self.store.entries.get(entry_id)
        if entry is None:
            raise LedgerEntryNotFoundError(str(entry_id))
        entry.annotate(metadata)
        return copy.deepcopy(entry)

    async def list_by_account(
        self,
        account_id: UUID,
        kind: Optional[EntryKind] = None,
        status: Optional[EntryStatus] = None,
        offset: int = 0,
        limit: int = 50,
    ) -> List[LedgerEntry]:
        await asyncio.sleep(0)
        matching = sorted(
            self._filtered(account_id, kind, status),
            key=lambda e: (e.created_at, str(e.id)),
            reverse=True,
        )
        return [copy.deepcopy(e) for e in matching[offset : offset + limit]]

    async def count_by_account(
        self,
        account_id: UUID,
        kind: Optional[EntryKind] = None,
        status: Optional[EntryStatus] = None,
    ) -> int:
        await asyncio.sleep(0)
        return len(self._filtered(account_id, kind, status))

    async def sum_completed(
        self,
        account_id: UUID,
        sub_ledger: Optional[SubLedger] = None,
    ) -> Decimal:
        await asyncio.sleep(0)
        return self._sum(account_id, EntryStatus.COMPLETED, sub_ledger)

    async def sum_pending_debits(
        self,
        account_id: UUID,
        sub_ledger: Optional[SubLedger] = None,
    ) -> Decimal:
        await asyncio.sleep(0)
        return self._sum(
            account_id, EntryStatus.PENDING, sub_ledger, debits_only=True
        )

    async def has_pending_withdrawal(self, bank_account_id: UUID) -> bool:
        await asyncio.sleep(0)
        return any(
            e.bank_account_id == bank_account_id
            and e.kind == EntryKind.WITHDRAWAL
            and e.is_pending
            for e in self.store.entries.values()
        )

    async def list_pending_withdrawals(
        self, offset: int = 0, limit: int = 50
    ) -> List[LedgerEntry]:
        await asyncio.sleep(0)
        pending = sorted(self._pending_withdrawals(), key=lambda e: e.created_at)
        return [copy.deepcopy(e) for e in pending[offset : offset + limit]]

    async def count_pending_withdrawals(self) -> int:
        await asyncio.sleep(0)
        return len(self._pending_withdrawals())

    async def lock_account(self, account_id: UUID) -> None:
        await asyncio.sleep(0)
        self.store.locked_accounts.append(account_id)

    def _filtered(self, account_id, kind, status) -> List[LedgerEntry]:
        return [
            e
            for e in self.store.entries.values()
            if e.account_id == account_id
            and (kind is None or e.kind == EntryKind(kind))
            and (status is None or e.status == EntryStatus(status))
        ]

    def _pending_withdrawals(self) -> List[LedgerEntry]:
        return [
            e
            for e in self.store.entries.values()
            if e.kind == EntryKind.WITHDRAWAL and e.is_pending
        ]

    def _sum(self, account_id, status, sub_ledger, debits_only=False) -> Decimal:
        total = sum(
            e.amount_minor
            for e in self.store.entries.values()
            if e.account_id == account_id
            and e.status == status
            and (sub_ledger is None or e.sub_ledger == sub_ledger)
            and (not debits_only or e.amount_minor < 0)
        )
        return from_minor(total)


class InMemoryBankAccountRepository(IBankAccountRepository):
    """Dict-backed bank account registry."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, bank_account: BankAccount) -> BankAccount:
        await asyncio.sleep(0)
        self.store.bank_accounts[bank_account.id] = copy.deepcopy(bank_account)
        return copy.deepcopy(bank_account)

    async def get_by_id(
        self, bank_account_id: UUID, for_update: bool = False
    ) -> Optional[BankAccount]:
        await asyncio.sleep(0)
        bank_account = self.store.bank_accounts.get(bank_account_id)
        return copy.deepcopy(bank_account) if bank_account else None

    async def list_by_owner(self, owner_id: UUID) -> List[BankAccount]:
        await asyncio.sleep(0)
        owned = [
            b for b in self.store.bank_accounts.values() if b.owner_id == owner_id
        ]
        owned.sort(key=lambda b: b.created_at, reverse=True)
        owned.sort(key=lambda b: b.is_primary, reverse=True)
        return [copy.deepcopy(b) for b in owned]

    async def count_by_owner(self, owner_id: UUID) -> int:
        await asyncio.sleep(0)
        return sum(
            1 for b in self.store.bank_accounts.values() if b.owner_id == owner_id
        )

    async def update(self, bank_account: BankAccount) -> BankAccount:
        await asyncio.sleep(0)
        stored = self.store.bank_accounts.get(bank_account.id)
        if stored is None:
            raise BankAccountNotFoundError(str(bank_account.id))
        updated = copy.deepcopy(bank_account)
        updated.is_primary = stored.is_primary
        self.store.bank_accounts[bank_account.id] = updated
        return copy.deepcopy(updated)

    async def delete(self, bank_account_id: UUID) -> bool:
        await asyncio.sleep(0)
        return self.store.bank_accounts.pop(bank_account_id, None) is not None

    async def set_primary(self, owner_id: UUID, bank_account_id: UUID) -> None:
        await asyncio.sleep(0)
        target = self.store.bank_accounts.get(bank_account_id)
        if target is None or target.owner_id != owner_id:
            raise BankAccountNotFoundError(str(bank_account_id))
        for bank_account in self.store.bank_accounts.values():
            if bank_account.owner_id == owner_id:
                bank_account.is_primary = bank_account.id == bank_account_id


class InMemoryVerificationAttemptRepository(IVerificationAttemptRepository):
    """Dict-backed verification attempts keyed by bank account."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get(self, bank_account_id: UUID) -> Optional[VerificationAttempt]:
        await asyncio.sleep(0)
        attempt = self.store.attempts.get(bank_account_id)
        return copy.deepcopy(attempt) if attempt else None

    async def save(self, attempt: VerificationAttempt) -> VerificationAttempt:
        await asyncio.sleep(0)
        self.store.attempts[attempt.bank_account_id] = copy.deepcopy(attempt)
        return copy.deepcopy(attempt)

    async def delete(self, bank_account_id: UUID) -> bool:
        await asyncio.sleep(0)
        return self.store.attempts.pop(bank_account_id, None) is not None

    async def delete_expired(self, now: datetime) -> int:
        await asyncio.sleep(0)
        expired = [k for k, a in self.store.attempts.items() if a.expires_at <= now]
        for key in expired:
            del self.store.attempts[key]
        return len(expired)


class FakeUnitOfWork(IUnitOfWork):
    """Unit of work over the shared store; counts commits and rollbacks."""

    def __init__(self, store: InMemoryStore):
        self.ledger = InMemoryLedgerRepository(store)
        self.bank_accounts = InMemoryBankAccountRepository(store)
        self.verifications = InMemoryVerificationAttemptRepository(store)
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


# ================================================================
# External services
# ================================================================


class FakePayoutGateway(IPayoutGateway):
    """
    Programmable payout gateway.

    Answers with `status` unless `error` is set, in which case the error
    is raised. Every request is recorded.
    """

    def __init__(
        self,
        status: PayoutStatus = PayoutStatus.PROCESSED,
        error: Optional[Exception] = None,
        failure_reason: Optional[str] = None,
    ):
        self.status = status
        self.error = error
        self.failure_reason = failure_reason
        self.requests: List[PayoutRequest] = []

    async def transfer(self, request: PayoutRequest) -> PayoutResult:
        self.requests.append(request)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return PayoutResult(
            reference_id=f"pout_test_{len(self.requests):04d}",
            status=self.status,
            failure_reason=self.failure_reason,
        )

    async def close(self) -> None:
        pass

    @property
    def last_request(self) -> PayoutRequest:
        return self.requests[-1]


class RecordingOtpDispatcher(IOtpDispatcher):
    """Keeps every code it was asked to deliver."""

    def __init__(self):
        self.sent: List[Tuple[VerificationMethod, str, str]] = []

    async def send(
        self, channel: VerificationMethod, destination: str, code: str
    ) -> None:
        self.sent.append((channel, destination, code))

    @property
    def last_code(self) -> str:
        return self.sent[-1][2]


class FakeBankVerificationService(IBankVerificationService):
    """Registry lookup returning a fixed result."""

    def __init__(self, result: Optional[BankLookupResult] = None):
        self.result = result or BankLookupResult(matched=True)
        self.calls: List[Tuple[str, str, str]] = []

    async def lookup(
        self, account_holder_name: str, account_number: str, ifsc_code: str
    ) -> BankLookupResult:
        self.calls.append((account_holder_name, account_number, ifsc_code))
        await asyncio.sleep(0)
        return self.result


# ================================================================
# Builders
# ================================================================


def make_account(
    role: AccountRole = AccountRole.CUSTOMER,
    phone: Optional[str] = "+919876543210",
    email: Optional[str] = "asha@example.com",
) -> Account:
    """Authenticated caller with OTP destinations on file."""
    return Account(id=uuid4(), role=role, phone=phone, email=email)


def make_bank_account(owner_id: UUID, verified: bool = False, **overrides) -> BankAccount:
    """Valid bank account, optionally already verified."""
    fields = {
        "owner_id": owner_id,
        "bank_name": "HDFC Bank",
        "account_holder_name": "Asha Rao",
        "account_number": "123456789012",
        "ifsc_code": "HDFC0001234",
    }
    fields.update(overrides)
    bank_account = BankAccount(**fields)
    if verified:
        bank_account.mark_verified(VerificationMethod.BANK_API)
    return bank_account


class WalletHarness:
    """
    Wires use cases to fakes the way the DI container wires them to
    infrastructure.

    Each factory call builds a fresh unit of work over the shared store,
    the equivalent of one HTTP request.
    """

    def __init__(self, payout_gateway: Optional[FakePayoutGateway] = None):
        self.store = InMemoryStore()
        self.locks = KeyedLockManager()
        self.cache = MemoryBalanceCache(ttl_seconds=60)
        self.events = LoggingEventPublisher()
        self.payout_gateway = payout_gateway or FakePayoutGateway()
        self.order_gateway = SimulatedOrderGateway()
        self.otp_dispatcher = RecordingOtpDispatcher()
        self.bank_verification = FakeBankVerificationService()
        self.last_uow: Optional[FakeUnitOfWork] = None

    def uow(self) -> FakeUnitOfWork:
        self.last_uow = FakeUnitOfWork(self.store)
        return self.last_uow

    # Ledger

    def record_deposit(self) -> RecordDeposit:
        return RecordDeposit(self.uow(), self.locks, self.events, self.cache)

    def record_refund(self) -> RecordRefund:
        return RecordRefund(self.uow(), self.locks, self.cache)

    def settle_session(self) -> SettleSessionPayment:
        return SettleSessionPayment(self.uow(), self.locks, self.events, self.cache)

    def get_balances(self) -> GetBalances:
        return GetBalances(self.uow().ledger, self.cache)

    def list_transactions(self) -> ListTransactions:
        return ListTransactions(self.uow().ledger)

    def process_webhook(self) -> ProcessPaymentWebhook:
        return ProcessPaymentWebhook(
            self.uow(), self.locks, self.events, WEBHOOK_SECRET, self.cache
        )

    # Recharges

    def create_recharge_order(self, **options) -> CreateRechargeOrder:
        return CreateRechargeOrder(
            self.uow(), self.order_gateway, CHECKOUT_KEY_ID, **options
        )

    def verify_checkout_payment(self) -> VerifyCheckoutPayment:
        return VerifyCheckoutPayment(
            self.uow(), self.locks, self.events, CHECKOUT_SECRET, self.cache
        )

    # Withdrawals

    def request_withdrawal(self, **options) -> RequestWithdrawal:
        return RequestWithdrawal(
            self.uow(),
            self.locks,
            self.payout_gateway,
            self.events,
            self.cache,
            **options,
        )

    def settle_withdrawal(self) -> SettleWithdrawal:
        return SettleWithdrawal(self.uow(), self.locks, self.events, self.cache)

    # Bank accounts

    def add_bank_account(self) -> AddBankAccount:
        return AddBankAccount(self.uow(), self.locks)

    def update_bank_account(self) -> UpdateBankAccount:
        return UpdateBankAccount(self.uow(), self.locks)

    def set_primary(self) -> SetPrimaryBankAccount:
        return SetPrimaryBankAccount(self.uow(), self.locks)

    def remove_bank_account(self) -> RemoveBankAccount:
        return RemoveBankAccount(self.uow(), self.locks)

    # Verification

    def initiate_otp(self, **options) -> InitiateOtp:
        return InitiateOtp(
            self.uow(), self.locks, self.otp_dispatcher, OTP_SECRET, **options
        )

    def verify_otp(self) -> VerifyOtp:
        return VerifyOtp(self.uow(), self.locks, self.events, OTP_SECRET)

    def auto_verify(self) -> AutoVerifyBankAccount:
        return AutoVerifyBankAccount(
            self.uow(), self.locks, self.bank_verification, self.events
        )

    def initiate_penny_drop(self, **options) -> InitiatePennyDrop:
        return InitiatePennyDrop(
            self.uow(), self.locks, self.payout_gateway, **options
        )

    def confirm_penny_drop(self) -> ConfirmPennyDrop:
        return ConfirmPennyDrop(self.uow(), self.locks, self.events)

    def reset_verification(self) -> ResetVerification:
        return ResetVerification(self.uow(), self.locks)

    # Seeding

    async def fund(self, account_id: UUID, amount: str) -> LedgerEntry:
        """Credit a wallet through the deposit use case."""
        result = await self.record_deposit().execute(
            account_id, amount, gateway_reference=f"pay_{uuid4().hex[:14]}"
        )
        return result.entry

    def add_verified_bank_account(self, owner_id: UUID, **overrides) -> BankAccount:
        """Put a verified account straight into the store."""
        bank_account = make_bank_account(owner_id, verified=True, **overrides)
        self.store.bank_accounts[bank_account.id] = copy.deepcopy(bank_account)
        return bank_account

    def add_unverified_bank_account(self, owner_id: UUID, **overrides) -> BankAccount:
        """Put an unverified account straight into the store."""
        bank_account = make_bank_account(owner_id, **overrides)
        self.store.bank_accounts[bank_account.id] = copy.deepcopy(bank_account)
        return bank_account

    def expire_attempt(self, bank_account_id: UUID) -> None:
        """Move an attempt's window into the past."""
        self.store.attempts[bank_account_id].expires_at = utc_now()

    def event_types(self) -> List[str]:
        return [event_type for event_type, _ in self.events.events]
