"""
SQLAlchemy repository implementations.
"""

from tresorier.infrastructure.persistence.repositories.bank_account_repository import (
    BankAccountRepository,
)
from tresorier.infrastructure.persistence.repositories.ledger_repository import (
    LedgerRepository,
)
from tresorier.infrastructure.persistence.repositories.verification_attempt_repository import (
    VerificationAttemptRepository,
)

__all__ = [
    "BankAccountRepository",
    "LedgerRepository",
    "VerificationAttemptRepository",
]
