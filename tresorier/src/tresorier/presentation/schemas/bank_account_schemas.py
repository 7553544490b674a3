"""
API schemas for bank account operations.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from tresorier.domain.entities.bank_account import AccountType, BankAccount


class BankAccountCreateRequest(BaseModel):
    """Register a payout destination."""

    bank_name: str = Field(..., min_length=1, max_length=100)
    account_holder_name: str = Field(..., min_length=1, max_length=100)
    account_number: str = Field(
        ..., description="9 to 18 digits", examples=["123456789012"]
    )
    ifsc_code: str = Field(..., description="IFSC code", examples=["HDFC0001234"])
    account_type: AccountType = Field(default=AccountType.SAVINGS)


class BankAccountUpdateRequest(BaseModel):
    """
    Edit a bank account.

    Changing account number or IFSC code resets verification.
    """

    bank_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    account_holder_name: Optional[str] = Field(
        default=None, min_length=1, max_length=100
    )
    account_number: Optional[str] = None
    ifsc_code: Optional[str] = None
    account_type: Optional[AccountType] = None


class BankAccountResponse(BaseModel):
    """Bank account with the account number masked."""

    id: UUID
    bank_name: str
    account_holder_name: str
    account_number: str = Field(..., examples=["********9012"])
    ifsc_code: str
    account_type: str
    is_verified: bool
    is_primary: bool
    verification_method: str
    created_at: datetime
    verified_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, bank_account: BankAccount) -> "BankAccountResponse":
        return cls(
            id=bank_account.id,
            bank_name=bank_account.bank_name,
            account_holder_name=bank_account.account_holder_name,
            account_number=bank_account.masked_account_number,
            ifsc_code=bank_account.ifsc_code,
            account_type=bank_account.account_type.value,
            is_verified=bank_account.is_verified,
            is_primary=bank_account.is_primary,
            verification_method=bank_account.verification_method.value,
            created_at=bank_account.created_at,
            verified_at=bank_account.verified_at,
        )
