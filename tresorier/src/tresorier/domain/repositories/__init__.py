"""
Repository interfaces.
"""

from tresorier.domain.repositories.i_bank_account_repository import (
    IBankAccountRepository,
)
from tresorier.domain.repositories.i_ledger_repository import ILedgerRepository
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.repositories.i_verification_attempt_repository import (
    IVerificationAttemptRepository,
)

__all__ = [
    "IBankAccountRepository",
    "ILedgerRepository",
    "IUnitOfWork",
    "IVerificationAttemptRepository",
]
