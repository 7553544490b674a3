"""
LedgerEntry entity - Immutable record of a balance-affecting event.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from tresorier.domain.exceptions import InvalidStateTransitionError, ValidationError
from tresorier.domain.value_objects import from_minor, to_minor, utc_now

EARNINGS_TYPE_KEY = "earnings_type"
SESSION_COMPLETION = "session_completion"
SOURCE_KEY = "source"


class EntryKind(str, Enum):
    """Ledger entry kinds."""

    DEPOSIT = "deposit"
    PAYMENT = "payment"
    REFUND = "refund"
    WITHDRAWAL = "withdrawal"

    @property
    def is_credit(self) -> bool:
        """Deposits and refunds add to the account."""
        return self in (EntryKind.DEPOSIT, EntryKind.REFUND)


class EntryStatus(str, Enum):
    """Ledger entry processing states."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class SubLedger(str, Enum):
    """Balance bucket an entry counts towards."""

    WALLET = "wallet"
    EARNINGS = "earnings"


@dataclass
class LedgerEntry:
    """
    LedgerEntry entity representing one balance movement.

    Business rules:
    - Amount is signed: deposits/refunds positive, payments/withdrawals
      negative
    - Amount has at most two decimal places and is never zero
    - Deposits and refunds are credited synchronously (COMPLETED);
      payments and withdrawals start PENDING
    - Status transitions: PENDING → COMPLETED or FAILED, nothing else
    - Withdrawals must name the target bank account
    - Session-completion credits and withdrawals sourced from earnings
      belong to the EARNINGS sub-ledger
    """

    account_id: UUID
    amount: Decimal
    kind: EntryKind
    id: UUID = field(default_factory=uuid4)
    status: Optional[EntryStatus] = field(default=None)
    description: str = field(default="")
    related_booking_id: Optional[str] = field(default=None)
    reference: Optional[str] = field(default=None)
    bank_account_id: Optional[UUID] = field(default=None)
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self):
        """Validate entry data after initialization."""
        if self.account_id is None:
            raise ValidationError("account_id", "Account is required")

        if not isinstance(self.kind, EntryKind):
            try:
                self.kind = EntryKind(self.kind)
            except ValueError:
                raise ValidationError("kind", f"Unknown entry kind: {self.kind}")

        try:
            self.amount = from_minor(to_minor(self.amount))
        except ValueError as e:
            raise ValidationError("amount", str(e))

        if self.amount == 0:
            raise ValidationError("amount", "Amount must not be zero")

        if self.kind.is_credit and self.amount < 0:
            raise ValidationError(
                "amount", f"{self.kind.value} amount must be positive"
            )

        if not self.kind.is_credit and self.amount > 0:
            raise ValidationError(
                "amount", f"{self.kind.value} amount must be negative"
            )

        if self.kind == EntryKind.WITHDRAWAL and self.bank_account_id is None:
            raise ValidationError("bank_account_id", "Withdrawal needs a bank account")

        if self.status is None:
            self.status = (
                EntryStatus.COMPLETED if self.kind.is_credit else EntryStatus.PENDING
            )

    @property
    def amount_minor(self) -> int:
        """Signed amount in paise."""
        return to_minor(self.amount)

    @property
    def sub_ledger(self) -> SubLedger:
        """Bucket used by the balance calculator."""
        if self.kind.is_credit:
            if self.metadata.get(EARNINGS_TYPE_KEY) == SESSION_COMPLETION:
                return SubLedger.EARNINGS
            return SubLedger.WALLET
        if self.metadata.get(SOURCE_KEY) == SubLedger.EARNINGS.value:
            return SubLedger.EARNINGS
        return SubLedger.WALLET

    @property
    def is_pending(self) -> bool:
        """True while the entry can still transition."""
        return self.status == EntryStatus.PENDING

    def transition(
        self,
        new_status: EntryStatus,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Move a pending entry to a terminal status.

        Args:
            new_status: COMPLETED or FAILED
            metadata: Optional keys merged into the entry metadata

        Raises:
            InvalidStateTransitionError: If entry is not PENDING or the
                target is not terminal
        """
        if self.status != EntryStatus.PENDING or new_status == EntryStatus.PENDING:
            raise InvalidStateTransitionError(
                "LedgerEntry", self.status.value, EntryStatus(new_status).value
            )

        self.status = EntryStatus(new_status)
        if metadata:
            self.metadata = {**self.metadata, **metadata}
        self.updated_at = utc_now()

    def annotate(self, metadata: Dict[str, Any]) -> None:
        """
        Merge metadata into a pending entry without settling it.

        Raises:
            InvalidStateTransitionError: If entry is already settled
        """
        if self.status != EntryStatus.PENDING:
            raise InvalidStateTransitionError(
                "LedgerEntry", self.status.value, self.status.value
            )
        self.metadata = {**self.metadata, **metadata}
        self.updated_at = utc_now()

    def complete(self, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Mark entry as completed."""
        self.transition(EntryStatus.COMPLETED, metadata)

    def fail(self, reason: str, metadata: Optional[Dict[str, Any]] = None) -> None:
        """Mark entry as failed, recording why."""
        self.transition(
            EntryStatus.FAILED, {**(metadata or {}), "failure_reason": reason}
        )

    def to_dict(self) -> dict:
        """Convert entity to dictionary representation."""
        return {
            "id": str(self.id),
            "account_id": str(self.account_id),
            "amount": str(self.amount),
            "kind": self.kind.value,
            "status": self.status.value,
            "description": self.description,
            "related_booking_id": self.related_booking_id,
            "reference": self.reference,
            "bank_account_id": (
                str(self.bank_account_id) if self.bank_account_id else None
            ),
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
