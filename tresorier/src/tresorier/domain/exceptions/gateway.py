"""
External gateway exceptions.

Timeouts and explicit declines are separate types so callers can tell
"definitely failed" apart from "outcome unknown".
"""

from tresorier.domain.exceptions.base import TresorierException


class GatewayError(TresorierException):
    """Raised when a payment/payout gateway call fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str = "GATEWAY_ERROR",
    ):
        super().__init__(message, code=code)
        self.status_code = status_code


class GatewayDeclinedError(GatewayError):
    """Raised when the gateway explicitly rejects a request."""

    def __init__(self, reason: str, status_code: int | None = None):
        super().__init__(
            f"Gateway declined request: {reason}",
            status_code=status_code,
            code="GATEWAY_DECLINED",
        )
        self.reason = reason


class GatewayTimeoutError(GatewayError):
    """Raised when the gateway did not answer within the timeout."""

    def __init__(self, operation: str, timeout_seconds: float):
        super().__init__(
            f"Gateway timed out after {timeout_seconds}s during {operation}",
            code="GATEWAY_TIMEOUT",
        )
        self.operation = operation


class InvalidSignatureError(TresorierException):
    """Raised when a webhook signature does not verify."""

    def __init__(self):
        super().__init__("Invalid webhook signature", code="INVALID_SIGNATURE")
