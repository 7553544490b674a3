"""
Operator API routes for manual payouts.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from tresorier.application.use_cases.settle_withdrawal import (
    ListPendingWithdrawals,
    SettleWithdrawal,
)
from tresorier.di.dependencies import (
    get_list_pending_withdrawals,
    get_settle_withdrawal,
)
from tresorier.domain.entities.account import Account
from tresorier.domain.entities.ledger_entry import EntryStatus
from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.presentation.api.middleware.auth import require_admin
from tresorier.presentation.schemas.wallet_schemas import TransactionResponse
from tresorier.presentation.schemas.withdrawal_schemas import (
    WithdrawalSettleRequest,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get(
    "/withdrawals/pending",
    response_model=List[TransactionResponse],
    summary="Pending withdrawals",
)
async def list_pending_withdrawals(
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
    operator: Account = Depends(require_admin),
    use_case: ListPendingWithdrawals = Depends(get_list_pending_withdrawals),
) -> List[TransactionResponse]:
    """Oldest first."""
    entries = await use_case.execute(offset=offset, limit=limit)
    return [TransactionResponse.from_entity(e) for e in entries]


@router.post(
    "/withdrawals/{entry_id}/settle",
    response_model=TransactionResponse,
    summary="Settle withdrawal",
)
async def settle_withdrawal(
    entry_id: UUID,
    request: WithdrawalSettleRequest,
    operator: Account = Depends(require_admin),
    use_case: SettleWithdrawal = Depends(get_settle_withdrawal),
) -> TransactionResponse:
    """
    Mark a pending withdrawal completed or failed.

    Failing releases the reserved funds. Settling a non-pending entry
    answers 409.
    """
    metadata = {"settled_by": str(operator.id)}
    if request.utr:
        metadata["utr"] = request.utr

    entry = await use_case.execute(
        entry_id,
        EntryStatus(request.outcome),
        failure_reason=request.failure_reason or "rejected_by_operator",
        metadata=metadata,
    )
    logger.info(
        "Withdrawal settled by operator",
        extra={"entry_id": str(entry_id), "operator_id": str(operator.id)},
    )
    return TransactionResponse.from_entity(entry)
