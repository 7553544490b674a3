"""
HTTP event publisher adapter.

Publishes domain events to the notification broker for fan-out to users.
"""

from typing import Any, Dict, Optional

import httpx

from tresorier.domain.services.i_event_publisher import IEventPublisher
from tresorier.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


class HttpEventPublisher(IEventPublisher):
    """
    POSTs events to {events_url}/publish/{channel}.

    The channel is the event type prefix ("withdrawal.completed" goes to
    "withdrawal"). Delivery failures are logged and swallowed.
    """

    def __init__(self, events_url: str, timeout: float = 5.0):
        """
        Initialize publisher.

        Args:
            events_url: Broker base URL
            timeout: HTTP request timeout in seconds
        """
        self.events_url = events_url.rstrip("/")
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
            )
        return self._client

    async def publish(self, event_type: str, payload: Dict[str, Any]) -> None:
        channel = event_type.split(".", 1)[0]
        url = f"{self.events_url}/publish/{channel}"
        event = {"event": event_type, **payload}

        try:
            response = await self.client.post(url, json=event)
        except httpx.HTTPError as e:
            logger.warning(f"Event publish failed for {event_type}: {e}")
            return

        if response.status_code >= 400:
            logger.warning(
                f"Event publish rejected for {event_type}: "
                f"HTTP {response.status_code}"
            )
            return

        logger.debug(f"Published {event_type} to {channel}")

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
