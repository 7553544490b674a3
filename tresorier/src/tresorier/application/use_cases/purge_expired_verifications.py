"""
Purge Expired Verifications use case (background sweep).
"""

from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.value_objects import utc_now


class PurgeExpiredVerifications:
    """Delete verification attempts whose window has closed."""

    def __init__(self, uow: IUnitOfWork):
        self.uow = uow

    async def execute(self) -> int:
        removed = await self.uow.verifications.delete_expired(utc_now())
        await self.uow.commit()
        return removed
