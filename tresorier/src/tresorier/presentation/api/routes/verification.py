"""
Bank account verification API routes.

Three paths: OTP (sms/email), automatic bank registry lookup, and
penny drop (micro-deposit).
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from tresorier.application.use_cases.auto_verify_bank_account import (
    AutoVerifyBankAccount,
)
from tresorier.application.use_cases.confirm_penny_drop import ConfirmPennyDrop
from tresorier.application.use_cases.initiate_otp import InitiateOtp
from tresorier.application.use_cases.initiate_penny_drop import (
    InitiatePennyDrop,
)
from tresorier.application.use_cases.reset_verification import (
    ResetVerification,
)
from tresorier.application.use_cases.verify_otp import VerifyOtp
from tresorier.di.dependencies import (
    get_auto_verify_bank_account,
    get_confirm_penny_drop,
    get_initiate_otp,
    get_initiate_penny_drop,
    get_reset_verification,
    get_verify_otp,
)
from tresorier.domain.entities.account import Account
from tresorier.presentation.api.middleware.auth import get_current_account
from tresorier.presentation.schemas.bank_account_schemas import BankAccountResponse
from tresorier.presentation.schemas.verification_schemas import (
    AutoVerifyResponse,
    OtpChallengeResponse,
    OtpInitiateRequest,
    OtpVerifyRequest,
    PennyDropChallengeResponse,
    PennyDropConfirmRequest,
    ResetVerificationResponse,
)

router = APIRouter(
    prefix="/bank-accounts/{bank_account_id}/verification",
    tags=["Verification"],
)

# ================================================================
# OTP
# ================================================================


@router.post(
    "/otp",
    response_model=OtpChallengeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send OTP",
)
async def initiate_otp(
    bank_account_id: UUID,
    request: OtpInitiateRequest,
    account: Account = Depends(get_current_account),
    use_case: InitiateOtp = Depends(get_initiate_otp),
) -> OtpChallengeResponse:
    """
    Send a one-time code to the caller's phone or email.

    Returns 429 with Retry-After while a previous code is still live.
    """
    challenge = await use_case.execute(account, bank_account_id, request.method)
    return OtpChallengeResponse.from_result(challenge)


@router.post(
    "/otp/verify",
    response_model=BankAccountResponse,
    summary="Verify OTP",
)
async def verify_otp(
    bank_account_id: UUID,
    request: OtpVerifyRequest,
    account: Account = Depends(get_current_account),
    use_case: VerifyOtp = Depends(get_verify_otp),
) -> BankAccountResponse:
    bank_account = await use_case.execute(account.id, bank_account_id, request.code)
    return BankAccountResponse.from_entity(bank_account)


# ================================================================
# Automatic (bank registry)
# ================================================================


@router.post(
    "/auto",
    response_model=AutoVerifyResponse,
    summary="Verify through bank registry",
)
async def auto_verify(
    bank_account_id: UUID,
    account: Account = Depends(get_current_account),
    use_case: AutoVerifyBankAccount = Depends(get_auto_verify_bank_account),
) -> AutoVerifyResponse:
    """A mismatch answers 200 with verified=false and a reason code."""
    result = await use_case.execute(account.id, bank_account_id)
    return AutoVerifyResponse(
        verified=result.verified,
        reason_code=result.reason_code,
        bank_account=BankAccountResponse.from_entity(result.bank_account),
    )


# ================================================================
# Penny drop
# ================================================================


@router.post(
    "/penny-drop",
    response_model=PennyDropChallengeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send micro-deposit",
)
async def initiate_penny_drop(
    bank_account_id: UUID,
    account: Account = Depends(get_current_account),
    use_case: InitiatePennyDrop = Depends(get_initiate_penny_drop),
) -> PennyDropChallengeResponse:
    challenge = await use_case.execute(account.id, bank_account_id)
    return PennyDropChallengeResponse.from_result(challenge)


@router.post(
    "/penny-drop/confirm",
    response_model=BankAccountResponse,
    summary="Confirm micro-deposit amount",
)
async def confirm_penny_drop(
    bank_account_id: UUID,
    request: PennyDropConfirmRequest,
    account: Account = Depends(get_current_account),
    use_case: ConfirmPennyDrop = Depends(get_confirm_penny_drop),
) -> BankAccountResponse:
    bank_account = await use_case.execute(account.id, bank_account_id, request.amount)
    return BankAccountResponse.from_entity(bank_account)


# ================================================================
# Reset
# ================================================================


@router.delete(
    "",
    response_model=ResetVerificationResponse,
    summary="Discard live verification",
)
async def reset_verification(
    bank_account_id: UUID,
    account: Account = Depends(get_current_account),
    use_case: ResetVerification = Depends(get_reset_verification),
) -> ResetVerificationResponse:
    """Any pending code or micro-deposit amount stops working at once."""
    reset = await use_case.execute(account.id, bank_account_id)
    return ResetVerificationResponse(reset=reset)
