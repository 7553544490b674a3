"""
Verification workflow exceptions.
"""

from tresorier.domain.exceptions.base import NotFoundError, TresorierException


class VerificationNotFoundError(NotFoundError):
    """Raised when no live verification attempt exists."""

    def __init__(self, bank_account_id: str):
        super().__init__(
            "VerificationAttempt", bank_account_id, code="VERIFICATION_NOT_FOUND"
        )


class RateLimitedError(TresorierException):
    """Raised when a verification is initiated while another is live."""

    def __init__(self, bank_account_id: str, retry_after_seconds: int):
        super().__init__(
            f"Verification already in progress for {bank_account_id}",
            code="RATE_LIMITED",
            details={"retry_after_seconds": retry_after_seconds},
        )
        self.retry_after_seconds = retry_after_seconds


class VerificationExpiredError(TresorierException):
    """Raised when the verification window has closed."""

    def __init__(self, bank_account_id: str):
        super().__init__(
            f"Verification for {bank_account_id} has expired",
            code="VERIFICATION_EXPIRED",
        )


class IncorrectCodeError(TresorierException):
    """Raised when a submitted OTP does not match."""

    def __init__(self, remaining_attempts: int):
        super().__init__(
            f"Incorrect code. {remaining_attempts} attempt(s) remaining",
            code="INCORRECT_CODE",
            details={"remaining_attempts": remaining_attempts},
        )
        self.remaining_attempts = remaining_attempts


class AmountMismatchError(TresorierException):
    """Raised when a confirmed micro-deposit amount does not match."""

    def __init__(self, remaining_attempts: int):
        super().__init__(
            f"Amount does not match. {remaining_attempts} attempt(s) remaining",
            code="AMOUNT_MISMATCH",
            details={"remaining_attempts": remaining_attempts},
        )
        self.remaining_attempts = remaining_attempts
