"""
Domain exceptions for Tresorier.
"""

from tresorier.domain.exceptions.auth import (
    AuthenticationError,
    ExpiredTokenError,
    ForbiddenError,
    InvalidTokenError,
)
from tresorier.domain.exceptions.bank_account import (
    AccountNotVerifiedError,
    AlreadyVerifiedError,
    BankAccountNotFoundError,
)
from tresorier.domain.exceptions.base import (
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    TresorierException,
    ValidationError,
)
from tresorier.domain.exceptions.gateway import (
    GatewayDeclinedError,
    GatewayError,
    GatewayTimeoutError,
    InvalidSignatureError,
)
from tresorier.domain.exceptions.ledger import (
    DuplicateReferenceError,
    InsufficientBalanceError,
    InvalidAmountError,
    LedgerEntryNotFoundError,
    OutOfBoundsError,
)
from tresorier.domain.exceptions.verification import (
    AmountMismatchError,
    IncorrectCodeError,
    RateLimitedError,
    VerificationExpiredError,
    VerificationNotFoundError,
)

__all__ = [
    # Base
    "TresorierException",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "InvalidStateTransitionError",
    # Auth
    "AuthenticationError",
    "ExpiredTokenError",
    "InvalidTokenError",
    "ForbiddenError",
    # Ledger
    "LedgerEntryNotFoundError",
    "DuplicateReferenceError",
    "InvalidAmountError",
    "OutOfBoundsError",
    "InsufficientBalanceError",
    # Bank accounts
    "BankAccountNotFoundError",
    "AccountNotVerifiedError",
    "AlreadyVerifiedError",
    # Verification
    "VerificationNotFoundError",
    "RateLimitedError",
    "VerificationExpiredError",
    "IncorrectCodeError",
    "AmountMismatchError",
    # Gateway
    "GatewayError",
    "GatewayDeclinedError",
    "GatewayTimeoutError",
    "InvalidSignatureError",
]
