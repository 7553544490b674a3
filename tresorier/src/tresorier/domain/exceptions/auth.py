"""
Authentication domain exceptions.
"""

from tresorier.domain.exceptions.base import TresorierException


class AuthenticationError(TresorierException):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTHENTICATION_ERROR")


class ExpiredTokenError(AuthenticationError):
    """Raised when JWT token has expired."""

    def __init__(self):
        super().__init__("Authentication token has expired")


class InvalidTokenError(AuthenticationError):
    """Raised when JWT token is malformed or invalid."""

    def __init__(self):
        super().__init__("Invalid authentication token")


class ForbiddenError(TresorierException):
    """Raised when the caller lacks the required role."""

    def __init__(self, message: str = "Operation not permitted"):
        super().__init__(message, code="FORBIDDEN")
