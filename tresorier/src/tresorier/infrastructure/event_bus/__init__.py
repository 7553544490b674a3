"""
Domain event publishers.
"""

from tresorier.infrastructure.event_bus.http_event_publisher import (
    HttpEventPublisher,
)
from tresorier.infrastructure.event_bus.logging_event_publisher import (
    LoggingEventPublisher,
)

__all__ = ["HttpEventPublisher", "LoggingEventPublisher"]
