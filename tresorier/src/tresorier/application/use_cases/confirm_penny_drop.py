"""
Confirm Penny Drop use case.
"""

from decimal import Decimal
from uuid import UUID

from tresorier.application.ownership import load_owned_bank_account
from tresorier.application.verification import load_live_attempt, settle_check
from tresorier.domain.entities.bank_account import BankAccount, VerificationMethod
from tresorier.domain.exceptions import AmountMismatchError, ValidationError
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.i_event_publisher import IEventPublisher
from tresorier.domain.services.i_lock_manager import ILockManager, bank_account_key
from tresorier.domain.value_objects import to_minor


class ConfirmPennyDrop:
    """
    Check the amount the owner saw on their statement.

    Amounts are compared as integer paise, so 3.40 and 3.4 are equal.
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        locks: ILockManager,
        event_publisher: IEventPublisher,
    ):
        self.uow = uow
        self.locks = locks
        self.event_publisher = event_publisher

    async def execute(
        self,
        owner_id: UUID,
        bank_account_id: UUID,
        amount: Decimal | str,
    ) -> BankAccount:
        """
        Execute confirmation.

        Raises:
            ValidationError: Amount malformed or more than two decimals
            BankAccountNotFoundError: Missing or not owned
            VerificationNotFoundError: No live penny drop
            VerificationExpiredError: Attempt expired
            AmountMismatchError: Wrong amount (carries remaining attempts)
        """
        try:
            entered_minor = to_minor(amount)
        except ValueError as e:
            raise ValidationError("amount", str(e))
        if entered_minor <= 0:
            raise ValidationError("amount", "Amount must be positive")

        async with self.locks.hold(bank_account_key(bank_account_id)):
            bank_account = await load_owned_bank_account(
                self.uow.bank_accounts, owner_id, bank_account_id, for_update=True
            )
            attempt = await load_live_attempt(
                self.uow, bank_account_id, (VerificationMethod.MICRO_DEPOSIT,)
            )
            attempt.record_entered_amount()

            return await settle_check(
                self.uow,
                self.event_publisher,
                bank_account,
                attempt,
                entered_minor == attempt.expected_amount_minor,
                AmountMismatchError,
            )
