"""
Verify OTP use case.
"""

import hmac
from uuid import UUID

from tresorier.application.ownership import load_owned_bank_account
from tresorier.application.verification import (
    hash_code,
    load_live_attempt,
    settle_check,
)
from tresorier.domain.entities.bank_account import BankAccount
from tresorier.domain.entities.verification_attempt import OTP_METHODS
from tresorier.domain.exceptions import IncorrectCodeError
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.i_event_publisher import IEventPublisher
from tresorier.domain.services.i_lock_manager import ILockManager, bank_account_key


class VerifyOtp:
    """
    Check a submitted code.

    Business rules:
    - No live attempt: VerificationNotFoundError
    - Expired: attempt discarded, VerificationExpiredError
    - Wrong code burns one attempt; the last one discards the attempt
    - Right code verifies the account and discards the attempt
    - Comparison is constant time
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        locks: ILockManager,
        event_publisher: IEventPublisher,
        hash_secret: str,
    ):
        self.uow = uow
        self.locks = locks
        self.event_publisher = event_publisher
        self.hash_secret = hash_secret

    async def execute(
        self, owner_id: UUID, bank_account_id: UUID, code: str
    ) -> BankAccount:
        """
        Execute verify.

        Returns:
            Verified BankAccount

        Raises:
            BankAccountNotFoundError: Missing or not owned
            VerificationNotFoundError: No live OTP attempt
            VerificationExpiredError: Code expired
            IncorrectCodeError: Wrong code (carries remaining attempts)
        """
        async with self.locks.hold(bank_account_key(bank_account_id)):
            bank_account = await load_owned_bank_account(
                self.uow.bank_accounts, owner_id, bank_account_id, for_update=True
            )
            attempt = await load_live_attempt(self.uow, bank_account_id, OTP_METHODS)

            submitted = hash_code(self.hash_secret, bank_account_id, code or "")
            matched = hmac.compare_digest(submitted, attempt.code_hash)

            return await settle_check(
                self.uow,
                self.event_publisher,
                bank_account,
                attempt,
                matched,
                IncorrectCodeError,
            )
