"""
Withdrawal API routes.

- POST /withdrawals - Withdraw to a verified bank account
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Response, status

from tresorier.application.use_cases.request_withdrawal import RequestWithdrawal
from tresorier.di.dependencies import get_request_withdrawal
from tresorier.domain.entities.account import Account
from tresorier.domain.entities.ledger_entry import EntryStatus
from tresorier.presentation.api.middleware.auth import get_current_account
from tresorier.presentation.schemas.withdrawal_schemas import (
    WithdrawalCreateRequest,
    WithdrawalResponse,
)

router = APIRouter(prefix="/withdrawals", tags=["Withdrawals"])


@router.post(
    "",
    response_model=WithdrawalResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request withdrawal",
    responses={202: {"description": "Accepted, payout pending"}},
)
async def request_withdrawal(
    request: WithdrawalCreateRequest,
    response: Response,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    account: Account = Depends(get_current_account),
    use_case: RequestWithdrawal = Depends(get_request_withdrawal),
) -> WithdrawalResponse:
    """
    Withdraw funds.

    Responses:
    - 201: payout completed
    - 202: reserved and pending (manual mode or gateway still processing)
    - 200: replay of an earlier request with the same Idempotency-Key
    - 402 / 403 / 404 / 422: rejected before any payout was attempted
    - 502 / 504: payout failed or timed out; funds were released
    """
    result = await use_case.execute(
        account=account,
        amount=request.amount,
        bank_account_id=request.bank_account_id,
        purpose=request.purpose,
        idempotency_key=idempotency_key,
    )

    if result.replayed:
        response.status_code = status.HTTP_200_OK
    elif result.entry.status == EntryStatus.PENDING:
        response.status_code = status.HTTP_202_ACCEPTED

    return WithdrawalResponse.from_result(result)
