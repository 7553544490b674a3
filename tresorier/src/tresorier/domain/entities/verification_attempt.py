"""
VerificationAttempt entity - Live state of an in-progress verification.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from tresorier.domain.entities.bank_account import VerificationMethod
from tresorier.domain.value_objects import utc_now

OTP_METHODS = (VerificationMethod.SMS, VerificationMethod.EMAIL)


class AttemptStage(str, Enum):
    """Intermediate verification states."""

    OTP_SENT = "otp_sent"
    PAYOUT_INITIATED = "payout_initiated"
    AMOUNT_ENTERED = "amount_entered"


@dataclass
class VerificationAttempt:
    """
    VerificationAttempt tied to one bank account.

    Business rules:
    - At most one live attempt per bank account
    - OTP attempts carry a code hash, never the code
    - Micro-deposit attempts carry the expected amount in paise and the
      gateway payout reference; the amount is never exposed to clients
    - A micro-deposit attempt moves from payout_initiated to amount_entered
      the first time the owner submits an amount
    - Each failed check burns one attempt; at zero the attempt is dead
    - Past expires_at the attempt is dead regardless of attempts left
    """

    bank_account_id: UUID
    method: VerificationMethod
    expires_at: datetime
    attempts_remaining: int = field(default=3)
    code_hash: Optional[str] = field(default=None)
    expected_amount_minor: Optional[int] = field(default=None)
    reference_id: Optional[str] = field(default=None)
    destination_hint: Optional[str] = field(default=None)
    amount_entered_at: Optional[datetime] = field(default=None)
    created_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        """Validate attempt data after initialization."""
        self.method = VerificationMethod(self.method)

        if self.method in OTP_METHODS:
            if not self.code_hash:
                raise ValueError("OTP attempt requires a code hash")
        elif self.method == VerificationMethod.MICRO_DEPOSIT:
            if self.expected_amount_minor is None or self.expected_amount_minor <= 0:
                raise ValueError("Micro-deposit attempt requires expected amount")
        else:
            raise ValueError(f"{self.method.value} has no multi-step attempt")

        if self.attempts_remaining < 0:
            raise ValueError("Attempts remaining cannot be negative")

    @property
    def stage(self) -> AttemptStage:
        """Where in the state machine this attempt sits."""
        if self.method == VerificationMethod.MICRO_DEPOSIT:
            if self.amount_entered_at is not None:
                return AttemptStage.AMOUNT_ENTERED
            return AttemptStage.PAYOUT_INITIATED
        return AttemptStage.OTP_SENT

    @property
    def is_exhausted(self) -> bool:
        """True once all attempts are used."""
        return self.attempts_remaining <= 0

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check expiry against now (naive UTC)."""
        return (now or utc_now()) >= self.expires_at

    def is_live(self, now: Optional[datetime] = None) -> bool:
        """Attempt can still be checked."""
        return not self.is_exhausted and not self.is_expired(now)

    def seconds_until_expiry(self, now: Optional[datetime] = None) -> int:
        """Whole seconds left in the window (never negative)."""
        remaining = (self.expires_at - (now or utc_now())).total_seconds()
        return max(0, int(remaining))

    def record_entered_amount(self, now: Optional[datetime] = None) -> None:
        """Note that the owner has typed an amount against this drop."""
        if self.method != VerificationMethod.MICRO_DEPOSIT:
            raise ValueError(f"{self.method.value} attempts take a code, not an amount")
        self.amount_entered_at = now or utc_now()

    def record_failure(self) -> int:
        """
        Burn one attempt.

        Returns:
            Attempts remaining after the failure
        """
        if self.attempts_remaining > 0:
            self.attempts_remaining -= 1
        return self.attempts_remaining

    def to_dict(self) -> dict:
        """Convert entity to dictionary (no secrets)."""
        return {
            "bank_account_id": str(self.bank_account_id),
            "method": self.method.value,
            "stage": self.stage.value,
            "attempts_remaining": self.attempts_remaining,
            "expires_at": self.expires_at.isoformat(),
            "reference_id": self.reference_id,
            "destination_hint": self.destination_hint,
            "amount_entered_at": (
                self.amount_entered_at.isoformat() if self.amount_entered_at else None
            ),
        }
