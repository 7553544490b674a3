"""
API schemas for withdrawals.
"""

from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from tresorier.application.use_cases.request_withdrawal import WithdrawalResult
from tresorier.presentation.schemas.wallet_schemas import TransactionResponse


class WithdrawalCreateRequest(BaseModel):
    """Withdraw to a verified bank account."""

    amount: Decimal = Field(..., description="Amount in rupees", examples=["500.00"])
    bank_account_id: UUID
    purpose: str = Field(default="payout", min_length=1, max_length=32)


class WithdrawalSettleRequest(BaseModel):
    """Operator decision for a manual withdrawal."""

    outcome: Literal["completed", "failed"]
    failure_reason: Optional[str] = Field(default=None, max_length=255)
    utr: Optional[str] = Field(
        default=None,
        description="Bank transfer reference for completed payouts",
        max_length=64,
    )


class WithdrawalResponse(BaseModel):
    """Withdrawal entry and how it is being paid out."""

    entry: TransactionResponse
    mode: str
    replayed: bool = False

    @classmethod
    def from_result(cls, result: WithdrawalResult) -> "WithdrawalResponse":
        return cls(
            entry=TransactionResponse.from_entity(result.entry),
            mode=result.mode,
            replayed=result.replayed,
        )
