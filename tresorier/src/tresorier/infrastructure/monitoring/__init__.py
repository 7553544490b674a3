"""
Monitoring: logging and metrics.
"""

from tresorier.infrastructure.monitoring.logger import (
    JSONFormatter,
    get_logger,
    get_request_id,
    log_performance,
    set_request_id,
    setup_logging,
)

__all__ = [
    "JSONFormatter",
    "get_logger",
    "get_request_id",
    "log_performance",
    "set_request_id",
    "setup_logging",
]
