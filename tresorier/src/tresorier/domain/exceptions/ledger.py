"""
Ledger and withdrawal exceptions.
"""

from decimal import Decimal

from tresorier.domain.exceptions.base import NotFoundError, TresorierException


class LedgerEntryNotFoundError(NotFoundError):
    """Raised when a ledger entry does not exist."""

    def __init__(self, entry_id: str):
        super().__init__("LedgerEntry", entry_id, code="LEDGER_ENTRY_NOT_FOUND")


class InvalidAmountError(TresorierException):
    """Raised when an amount is zero, negative or not representable."""

    def __init__(self, amount: Decimal | str, reason: str = "Amount must be positive"):
        super().__init__(
            f"Invalid amount {amount}: {reason}",
            code="INVALID_AMOUNT",
            details={"amount": str(amount)},
        )


class OutOfBoundsError(TresorierException):
    """Raised when a withdrawal falls outside the platform limits."""

    def __init__(self, amount: Decimal, minimum: Decimal, maximum: Decimal):
        super().__init__(
            f"Amount {amount} must be between {minimum} and {maximum}",
            code="OUT_OF_BOUNDS",
            details={
                "amount": str(amount),
                "minimum": str(minimum),
                "maximum": str(maximum),
            },
        )


class InsufficientBalanceError(TresorierException):
    """Raised when the account cannot cover the requested debit."""

    def __init__(self, required: Decimal, available: Decimal):
        super().__init__(
            f"Insufficient balance. Required: {required}, Available: {available}",
            code="INSUFFICIENT_BALANCE",
            details={"required": str(required), "available": str(available)},
        )
        self.required = required
        self.available = available


class DuplicateReferenceError(TresorierException):
    """
    Raised by the ledger store when a gateway reference is reused.

    Deposit intake treats this as success and returns the original entry.
    """

    def __init__(self, reference: str):
        super().__init__(
            f"Ledger entry with reference {reference} already exists",
            code="DUPLICATE_REFERENCE",
        )
        self.reference = reference
