"""
API schemas for bank account verification.
"""

from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field

from tresorier.application.use_cases.initiate_otp import OtpChallenge
from tresorier.application.use_cases.initiate_penny_drop import PennyDropChallenge
from tresorier.presentation.schemas.bank_account_schemas import BankAccountResponse

# ================================================================
# Request Schemas
# ================================================================


class OtpInitiateRequest(BaseModel):
    """Choose the OTP channel."""

    method: Literal["sms", "email"] = Field(default="sms")


class OtpVerifyRequest(BaseModel):
    """Submit the received code."""

    code: str = Field(..., min_length=4, max_length=10, pattern=r"^\d+$")


class PennyDropConfirmRequest(BaseModel):
    """Submit the micro-deposit amount seen on the bank statement."""

    amount: Decimal = Field(..., description="Amount in rupees", examples=["1.37"])


# ================================================================
# Response Schemas
# ================================================================


class OtpChallengeResponse(BaseModel):
    """Code sent; never includes the code."""

    method: str
    destination: str = Field(..., examples=["******3210"])
    expires_in: int
    attempts_remaining: int

    @classmethod
    def from_result(cls, challenge: OtpChallenge) -> "OtpChallengeResponse":
        return cls(
            method=challenge.method.value,
            destination=challenge.destination,
            expires_in=challenge.expires_in,
            attempts_remaining=challenge.attempts_remaining,
        )


class PennyDropChallengeResponse(BaseModel):
    """Micro-deposit sent; never includes the amount."""

    reference_id: str
    expires_in: int
    attempts_remaining: int

    @classmethod
    def from_result(
        cls, challenge: PennyDropChallenge
    ) -> "PennyDropChallengeResponse":
        return cls(
            reference_id=challenge.reference_id,
            expires_in=challenge.expires_in,
            attempts_remaining=challenge.attempts_remaining,
        )


class AutoVerifyResponse(BaseModel):
    """Bank registry lookup outcome."""

    verified: bool
    reason_code: Optional[str] = None
    bank_account: BankAccountResponse


class ResetVerificationResponse(BaseModel):
    """Whether a live attempt was discarded."""

    reset: bool
