"""
Unit of work interface.

Groups the repositories that share one transaction and lets use cases
commit in the middle of an operation (reserve funds, then call a gateway
outside the transaction, then settle).
"""

from abc import ABC, abstractmethod

from tresorier.domain.repositories.i_bank_account_repository import (
    IBankAccountRepository,
)
from tresorier.domain.repositories.i_ledger_repository import ILedgerRepository
from tresorier.domain.repositories.i_verification_attempt_repository import (
    IVerificationAttemptRepository,
)


class IUnitOfWork(ABC):
    """Transaction boundary shared by repositories."""

    ledger: ILedgerRepository
    bank_accounts: IBankAccountRepository
    verifications: IVerificationAttemptRepository

    @abstractmethod
    async def commit(self) -> None:
        """Commit pending changes and start a fresh transaction."""

    @abstractmethod
    async def rollback(self) -> None:
        """Discard pending changes."""
