"""
Razorpay checkout order client.
"""

from typing import Dict, Optional

from tresorier.domain.services.i_payment_order_gateway import (
    IPaymentOrderGateway,
    PaymentOrder,
)
from tresorier.infrastructure.gateways.razorpay_client import (
    DEFAULT_BASE_URL,
    RazorpayClient,
)
from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.resilience import CircuitBreakerConfig

logger = get_logger(__name__)

GATEWAY_NAME = "razorpay_orders"


class RazorpayOrderGateway(RazorpayClient, IPaymentOrderGateway):
    """Creates orders through POST /orders."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = DEFAULT_BASE_URL,
        total_timeout: float = 30.0,
        connect_timeout: float = 10.0,
        circuit_breaker_config: Optional[CircuitBreakerConfig] = None,
    ):
        super().__init__(
            key_id,
            key_secret,
            GATEWAY_NAME,
            base_url=base_url,
            total_timeout=total_timeout,
            connect_timeout=connect_timeout,
            circuit_breaker_config=circuit_breaker_config,
        )

    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Dict[str, str],
    ) -> PaymentOrder:
        """
        Create a checkout order.

        Raises:
            GatewayDeclinedError: Razorpay rejected the request (4xx)
            GatewayTimeoutError: No answer within the timeout
            GatewayError: Server/network error or circuit open
        """
        data = await self._post(
            "/orders",
            {
                "amount": amount_minor,
                "currency": currency,
                "receipt": receipt[:40],
                "notes": {k: str(v) for k, v in notes.items()},
            },
            operation="order",
        )

        logger.info(
            "Order created",
            extra={"order_id": data.get("id"), "amount_minor": amount_minor},
        )

        return PaymentOrder(
            order_id=data["id"],
            amount_minor=data.get("amount", amount_minor),
            currency=data.get("currency", currency),
            receipt=data.get("receipt", receipt),
            status=data.get("status", "created"),
            raw=data,
        )
