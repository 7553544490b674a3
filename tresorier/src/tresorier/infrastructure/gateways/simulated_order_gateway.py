"""
Simulated checkout order gateway for development and tests.
"""

import uuid
from typing import Dict, List

from tresorier.domain.services.i_payment_order_gateway import (
    IPaymentOrderGateway,
    PaymentOrder,
)
from tresorier.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


class SimulatedOrderGateway(IPaymentOrderGateway):
    """Hands out order ids without contacting a gateway."""

    def __init__(self):
        self.orders: List[PaymentOrder] = []

    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Dict[str, str],
    ) -> PaymentOrder:
        order = PaymentOrder(
            order_id=f"order_sim_{uuid.uuid4().hex[:14]}",
            amount_minor=amount_minor,
            currency=currency,
            receipt=receipt,
            raw={"notes": dict(notes)},
        )
        self.orders.append(order)

        logger.info(
            "Simulated order",
            extra={"order_id": order.order_id, "amount_minor": amount_minor},
        )
        return order

    async def close(self) -> None:
        self.orders.clear()
