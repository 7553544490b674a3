"""
Simulated payout gateway for development and tests.
"""

import uuid
from typing import Dict, Optional

from tresorier.domain.services.i_payout_gateway import (
    IPayoutGateway,
    PayoutRequest,
    PayoutResult,
    PayoutStatus,
)
from tresorier.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


class SimulatedPayoutGateway(IPayoutGateway):
    """
    Payout gateway that moves no money.

    Every transfer succeeds with the configured status. Replays with the
    same idempotency key return the original result, like the real API.
    """

    def __init__(self, status: PayoutStatus = PayoutStatus.PROCESSED):
        self.status = status
        self._results: Dict[str, PayoutResult] = {}

    async def transfer(self, request: PayoutRequest) -> PayoutResult:
        existing: Optional[PayoutResult] = self._results.get(request.idempotency_key)
        if existing is not None:
            return existing

        result = PayoutResult(
            reference_id=f"pout_sim_{uuid.uuid4().hex[:14]}",
            status=self.status,
            raw={"amount": request.amount_minor, "purpose": request.purpose},
        )
        self._results[request.idempotency_key] = result

        logger.info(
            "Simulated payout",
            extra={
                "payout_id": result.reference_id,
                "amount_minor": request.amount_minor,
                "purpose": request.purpose,
            },
        )
        return result

    async def close(self) -> None:
        self._results.clear()
