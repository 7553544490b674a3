"""
Bank account exceptions.
"""

from tresorier.domain.exceptions.base import NotFoundError, TresorierException


class BankAccountNotFoundError(NotFoundError):
    """Raised when a bank account is unknown or owned by someone else."""

    def __init__(self, bank_account_id: str):
        super().__init__("BankAccount", bank_account_id, code="ACCOUNT_NOT_FOUND")


class AccountNotVerifiedError(TresorierException):
    """Raised when a withdrawal targets an unverified bank account."""

    def __init__(self, bank_account_id: str):
        super().__init__(
            f"Bank account {bank_account_id} is not verified",
            code="ACCOUNT_NOT_VERIFIED",
        )


class AlreadyVerifiedError(TresorierException):
    """Raised when verification is started on a verified account."""

    def __init__(self, bank_account_id: str):
        super().__init__(
            f"Bank account {bank_account_id} is already verified",
            code="ALREADY_VERIFIED",
        )
