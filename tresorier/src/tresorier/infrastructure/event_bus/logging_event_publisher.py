"""
Logging event publisher (no broker configured).
"""

from typing import Any, Dict, List, Tuple

from tresorier.domain.services.i_event_publisher import IEventPublisher
from tresorier.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


class LoggingEventPublisher(IEventPublisher):
    """Writes events to the log and keeps the last few for inspection."""

    def __init__(self, keep: int = 100):
        self.keep = keep
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    async def publish(self, event_type: str, payload: Dict[str, Any]) -> None:
        self.events.append((event_type, payload))
        del self.events[: -self.keep]
        logger.info(f"Event {event_type}", extra={"event_type": event_type})
