"""
User notification adapters.
"""

from tresorier.infrastructure.notifications.otp_dispatcher import (
    HttpOtpDispatcher,
    LoggingOtpDispatcher,
    mask_destination,
)

__all__ = ["HttpOtpDispatcher", "LoggingOtpDispatcher", "mask_destination"]
