"""
SQLAlchemy unit of work.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.infrastructure.persistence.repositories import (
    BankAccountRepository,
    LedgerRepository,
    VerificationAttemptRepository,
)


class SqlAlchemyUnitOfWork(IUnitOfWork):
    """
    Unit of work over one AsyncSession.

    The session opens a new transaction automatically after each commit,
    so a use case can commit a reservation and keep working.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.ledger = LedgerRepository(session)
        self.bank_accounts = BankAccountRepository(session)
        self.verifications = VerificationAttemptRepository(session)

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
