"""
Payout gateway interface.

Moves money from the platform to a bank account. Used for withdrawals
and for penny-drop verification transfers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class PayoutStatus(str, Enum):
    """Gateway-reported payout outcome."""

    PROCESSED = "processed"
    PROCESSING = "processing"
    FAILED = "failed"


@dataclass(frozen=True)
class PayoutRequest:
    """
    Transfer instruction sent to the gateway.

    amount_minor is in paise; idempotency_key makes a retried call after a
    timeout safe.
    """

    amount_minor: int
    account_number: str
    ifsc_code: str
    account_holder_name: str
    idempotency_key: str
    purpose: str = "payout"
    narration: str = "Tresorier payout"
    notes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PayoutResult:
    """Gateway response to a transfer."""

    reference_id: str
    status: PayoutStatus
    failure_reason: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


class IPayoutGateway(ABC):
    """Abstract interface for the external payout gateway."""

    @abstractmethod
    async def transfer(self, request: PayoutRequest) -> PayoutResult:
        """
        Dispatch a transfer.

        Args:
            request: Transfer instruction

        Returns:
            PayoutResult (PROCESSED, PROCESSING or FAILED)

        Raises:
            GatewayDeclinedError: If gateway rejects the request
            GatewayTimeoutError: If gateway did not answer in time
            GatewayError: On transport or server errors
        """

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""
