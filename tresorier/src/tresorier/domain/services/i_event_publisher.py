"""
Event publisher interface.

Domain events are consumed by the external notification channel.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

# Event types
WITHDRAWAL_REQUESTED = "withdrawal.requested"
WITHDRAWAL_COMPLETED = "withdrawal.completed"
WITHDRAWAL_FAILED = "withdrawal.failed"
DEPOSIT_RECORDED = "deposit.recorded"
SESSION_SETTLED = "session.settled"
VERIFICATION_SUCCEEDED = "verification.succeeded"
VERIFICATION_FAILED = "verification.failed"


class IEventPublisher(ABC):
    """Abstract interface for publishing domain events."""

    @abstractmethod
    async def publish(self, event_type: str, payload: Dict[str, Any]) -> None:
        """
        Publish a domain event.

        Implementations must not raise on delivery failure; losing a
        notification never undoes a ledger write.

        Args:
            event_type: Dotted event name (e.g. withdrawal.completed)
            payload: JSON-serializable event body
        """

    async def close(self) -> None:
        """Release network resources."""
