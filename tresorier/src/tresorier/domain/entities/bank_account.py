"""
BankAccount entity - Withdrawal destination with verification state.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from tresorier.domain.exceptions import ValidationError
from tresorier.domain.value_objects import utc_now

ACCOUNT_NUMBER_PATTERN = re.compile(r"^\d{9,18}$")
IFSC_PATTERN = re.compile(r"^[A-Z]{4}0[A-Z0-9]{6}$")


class AccountType(str, Enum):
    """Bank account types."""

    SAVINGS = "savings"
    CURRENT = "current"
    SALARY = "salary"


class VerificationMethod(str, Enum):
    """How a bank account was (or is being) verified."""

    SMS = "sms"
    EMAIL = "email"
    BANK_API = "bank_api"
    MICRO_DEPOSIT = "micro_deposit"
    NONE = "none"


@dataclass
class BankAccount:
    """
    BankAccount entity owned by a wallet account.

    Business rules:
    - New accounts start unverified
    - Account number is 9-18 digits, IFSC is 11 chars (AAAA0XXXXXX)
    - Changing account number or IFSC resets verification
    - Only verified accounts can receive withdrawals
    - Primary flag is managed by the registry, at most one per owner
    """

    owner_id: UUID
    bank_name: str
    account_holder_name: str
    account_number: str
    ifsc_code: str
    account_type: AccountType = field(default=AccountType.SAVINGS)
    id: UUID = field(default_factory=uuid4)
    is_verified: bool = field(default=False)
    is_primary: bool = field(default=False)
    verification_method: VerificationMethod = field(default=VerificationMethod.NONE)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: Optional[datetime] = field(default=None)
    verified_at: Optional[datetime] = field(default=None)

    def __post_init__(self):
        """Validate bank account data after initialization."""
        self.bank_name = (self.bank_name or "").strip()
        self.account_holder_name = (self.account_holder_name or "").strip()
        self.account_number = (self.account_number or "").replace(" ", "")
        self.ifsc_code = (self.ifsc_code or "").strip().upper()

        if not self.bank_name:
            raise ValidationError("bank_name", "Bank name is required")

        if not self.account_holder_name:
            raise ValidationError(
                "account_holder_name", "Account holder name is required"
            )

        if not ACCOUNT_NUMBER_PATTERN.match(self.account_number):
            raise ValidationError("account_number", "Must be 9 to 18 digits")

        if not IFSC_PATTERN.match(self.ifsc_code):
            raise ValidationError("ifsc_code", "Invalid IFSC code format")

        try:
            self.account_type = AccountType(self.account_type)
        except ValueError:
            raise ValidationError(
                "account_type", f"Unknown account type: {self.account_type}"
            )

    @property
    def masked_account_number(self) -> str:
        """Account number with all but the last four digits hidden."""
        return "*" * (len(self.account_number) - 4) + self.account_number[-4:]

    @property
    def last4(self) -> str:
        """Last four digits of the account number."""
        return self.account_number[-4:]

    def update_details(
        self,
        bank_name: Optional[str] = None,
        account_holder_name: Optional[str] = None,
        account_number: Optional[str] = None,
        ifsc_code: Optional[str] = None,
        account_type: Optional[AccountType] = None,
    ) -> bool:
        """
        Apply edits to the account.

        Returns:
            True if verification was invalidated by the change
        """
        previous_number = self.account_number
        previous_ifsc = self.ifsc_code

        candidate = BankAccount(
            owner_id=self.owner_id,
            bank_name=bank_name if bank_name is not None else self.bank_name,
            account_holder_name=(
                account_holder_name
                if account_holder_name is not None
                else self.account_holder_name
            ),
            account_number=(
                account_number if account_number is not None else self.account_number
            ),
            ifsc_code=ifsc_code if ifsc_code is not None else self.ifsc_code,
            account_type=account_type if account_type is not None else self.account_type,
        )

        self.bank_name = candidate.bank_name
        self.account_holder_name = candidate.account_holder_name
        self.account_number = candidate.account_number
        self.ifsc_code = candidate.ifsc_code
        self.account_type = candidate.account_type
        self.updated_at = utc_now()

        routing_changed = (
            self.account_number != previous_number or self.ifsc_code != previous_ifsc
        )
        if routing_changed:
            self.reset_verification()
        return routing_changed

    def mark_verified(self, method: VerificationMethod) -> None:
        """
        Mark account as verified.

        Raises:
            ValidationError: If method is NONE
        """
        if method == VerificationMethod.NONE:
            raise ValidationError("verification_method", "Method is required")

        self.is_verified = True
        self.verification_method = VerificationMethod(method)
        self.verified_at = utc_now()
        self.updated_at = self.verified_at

    def reset_verification(self) -> None:
        """Drop verified state."""
        self.is_verified = False
        self.verification_method = VerificationMethod.NONE
        self.verified_at = None
        self.updated_at = utc_now()

    def to_dict(self, mask: bool = True) -> dict:
        """Convert entity to dictionary representation."""
        return {
            "id": str(self.id),
            "owner_id": str(self.owner_id),
            "bank_name": self.bank_name,
            "account_holder_name": self.account_holder_name,
            "account_number": (
                self.masked_account_number if mask else self.account_number
            ),
            "ifsc_code": self.ifsc_code,
            "account_type": self.account_type.value,
            "is_verified": self.is_verified,
            "is_primary": self.is_primary,
            "verification_method": self.verification_method.value,
            "created_at": self.created_at.isoformat(),
            "verified_at": self.verified_at.isoformat() if self.verified_at else None,
        }
