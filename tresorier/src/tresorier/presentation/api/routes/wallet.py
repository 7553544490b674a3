"""
Wallet API routes.

Provides endpoints for the caller's balances and ledger history:
- GET /wallet/balance - Wallet, earnings and withdrawable balances
- GET /wallet/transactions - Paged ledger history
- POST /wallet/recharge/orders - Open a checkout order for a top-up
- POST /wallet/recharge/verify - Credit a paid order from the checkout response
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from tresorier.application.use_cases.create_recharge_order import (
    CreateRechargeOrder,
)
from tresorier.application.use_cases.get_balances import GetBalances
from tresorier.application.use_cases.list_transactions import (
    MAX_PAGE_SIZE,
    ListTransactions,
)
from tresorier.application.use_cases.verify_checkout_payment import (
    VerifyCheckoutPayment,
)
from tresorier.di.dependencies import (
    get_create_recharge_order,
    get_get_balances,
    get_list_transactions,
    get_verify_checkout_payment,
)
from tresorier.domain.entities.account import Account
from tresorier.domain.entities.ledger_entry import EntryKind, EntryStatus
from tresorier.presentation.api.middleware.auth import get_current_account
from tresorier.presentation.schemas.wallet_schemas import (
    BalanceResponse,
    CheckoutVerificationRequest,
    DepositResponse,
    RechargeOrderRequest,
    RechargeOrderResponse,
    TransactionListResponse,
    TransactionResponse,
)

router = APIRouter(prefix="/wallet", tags=["Wallet"])


@router.get(
    "/balance",
    response_model=BalanceResponse,
    status_code=status.HTTP_200_OK,
    summary="Get balances",
    description="Wallet balance, available earnings and withdrawable funds",
)
async def get_balance(
    account: Account = Depends(get_current_account),
    use_case: GetBalances = Depends(get_get_balances),
) -> BalanceResponse:
    """
    Get the caller's balances.

    Only completed entries count; pending withdrawals are reported
    separately and already subtracted from withdrawable_balance.
    """
    result = await use_case.execute(account)
    return BalanceResponse.from_result(result)


@router.get(
    "/transactions",
    response_model=TransactionListResponse,
    status_code=status.HTTP_200_OK,
    summary="List transactions",
)
async def list_transactions(
    kind: Optional[EntryKind] = Query(default=None),
    entry_status: Optional[EntryStatus] = Query(default=None, alias="status"),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=MAX_PAGE_SIZE),
    account: Account = Depends(get_current_account),
    use_case: ListTransactions = Depends(get_list_transactions),
) -> TransactionListResponse:
    """Ledger history of the caller, newest first."""
    page = await use_case.execute(
        account_id=account.id,
        kind=kind,
        status=entry_status,
        offset=offset,
        limit=limit,
    )
    return TransactionListResponse.from_page(page)


@router.post(
    "/recharge/orders",
    response_model=RechargeOrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create recharge order",
    description="Open a checkout order and record the pending top-up",
)
async def create_recharge_order(
    request: RechargeOrderRequest,
    account: Account = Depends(get_current_account),
    use_case: CreateRechargeOrder = Depends(get_create_recharge_order),
) -> RechargeOrderResponse:
    """
    Start a wallet recharge.

    The pending entry does not count toward any balance until the payment
    is verified or its webhook arrives.
    """
    result = await use_case.execute(account, request.amount, request.currency)
    return RechargeOrderResponse.from_result(result)


@router.post(
    "/recharge/verify",
    response_model=DepositResponse,
    status_code=status.HTTP_200_OK,
    summary="Verify checkout payment",
)
async def verify_checkout_payment(
    request: CheckoutVerificationRequest,
    account: Account = Depends(get_current_account),
    use_case: VerifyCheckoutPayment = Depends(get_verify_checkout_payment),
) -> DepositResponse:
    """Credit the caller's order once the checkout signature checks out."""
    result = await use_case.execute(
        account,
        order_id=request.razorpay_order_id,
        payment_id=request.razorpay_payment_id,
        signature=request.razorpay_signature,
    )
    return DepositResponse(
        entry=TransactionResponse.from_entity(result.entry),
        duplicate=result.duplicate,
    )
