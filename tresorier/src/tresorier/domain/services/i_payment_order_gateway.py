"""
Payment order gateway interface.

Opens checkout orders the client pays against to top up a wallet.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class PaymentOrder:
    """Checkout order as created by the gateway."""

    order_id: str
    amount_minor: int
    currency: str
    receipt: str
    status: str = "created"
    raw: Dict[str, Any] = field(default_factory=dict)


class IPaymentOrderGateway(ABC):
    """Abstract interface for checkout order creation."""

    @abstractmethod
    async def create_order(
        self,
        amount_minor: int,
        currency: str,
        receipt: str,
        notes: Dict[str, str],
    ) -> PaymentOrder:
        """
        Create an order.

        Args:
            amount_minor: Amount in paise
            currency: ISO currency code
            receipt: Our receipt id (max 40 characters)
            notes: Key/value notes copied onto the eventual payment

        Returns:
            PaymentOrder

        Raises:
            GatewayDeclinedError: If gateway rejects the request
            GatewayTimeoutError: If gateway did not answer in time
            GatewayError: On transport or server errors
        """

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""
