"""
Internal API routes for trusted services.

Booking and payment services post ledger events here with the shared
service token.
"""

from fastapi import APIRouter, Depends, Response, status

from tresorier.application.use_cases.record_deposit import RecordDeposit
from tresorier.application.use_cases.record_refund import RecordRefund
from tresorier.application.use_cases.settle_session_payment import (
    SettleSessionPayment,
)
from tresorier.di.dependencies import (
    get_record_deposit,
    get_record_refund,
    get_settle_session_payment,
)
from tresorier.presentation.api.middleware.auth import require_internal_token
from tresorier.presentation.schemas.wallet_schemas import (
    DepositRequest,
    DepositResponse,
    RefundRequest,
    SessionSettlementRequest,
    SessionSettlementResponse,
    TransactionResponse,
)

router = APIRouter(
    prefix="/internal",
    tags=["Internal"],
    dependencies=[Depends(require_internal_token)],
)


@router.post(
    "/deposits",
    response_model=DepositResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record deposit",
)
async def record_deposit(
    request: DepositRequest,
    response: Response,
    use_case: RecordDeposit = Depends(get_record_deposit),
) -> DepositResponse:
    """Idempotent on gateway_reference; a replay answers 200."""
    result = await use_case.execute(
        account_id=request.account_id,
        amount=request.amount,
        gateway_reference=request.gateway_reference,
        description=request.description,
        metadata=request.metadata,
    )
    if result.duplicate:
        response.status_code = status.HTTP_200_OK
    return DepositResponse(
        entry=TransactionResponse.from_entity(result.entry),
        duplicate=result.duplicate,
    )


@router.post(
    "/sessions/settle",
    response_model=SessionSettlementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Settle session payment",
)
async def settle_session(
    request: SessionSettlementRequest,
    response: Response,
    use_case: SettleSessionPayment = Depends(get_settle_session_payment),
) -> SessionSettlementResponse:
    """Charge the customer and credit the designer's earnings."""
    result = await use_case.execute(
        session_id=request.session_id,
        customer_id=request.customer_id,
        designer_id=request.designer_id,
        amount=request.amount,
    )
    if result.duplicate:
        response.status_code = status.HTTP_200_OK
    return SessionSettlementResponse(
        payment=TransactionResponse.from_entity(result.payment),
        earning=TransactionResponse.from_entity(result.earning),
        duplicate=result.duplicate,
    )


@router.post(
    "/refunds",
    response_model=DepositResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record refund",
)
async def record_refund(
    request: RefundRequest,
    response: Response,
    use_case: RecordRefund = Depends(get_record_refund),
) -> DepositResponse:
    result = await use_case.execute(
        account_id=request.account_id,
        amount=request.amount,
        reference=request.reference,
        booking_id=request.booking_id,
        description=request.description,
    )
    if result.duplicate:
        response.status_code = status.HTTP_200_OK
    return DepositResponse(
        entry=TransactionResponse.from_entity(result.entry),
        duplicate=result.duplicate,
    )
