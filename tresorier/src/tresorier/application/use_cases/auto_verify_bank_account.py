"""
Auto Verify Bank Account use case (bank_api method).
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from tresorier.application.ownership import load_owned_bank_account
from tresorier.domain.entities.bank_account import BankAccount, VerificationMethod
from tresorier.domain.exceptions import AlreadyVerifiedError
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.i_bank_verification_service import (
    IBankVerificationService,
)
from tresorier.domain.services.i_event_publisher import (
    VERIFICATION_SUCCEEDED,
    IEventPublisher,
)
from tresorier.domain.services.i_lock_manager import ILockManager, bank_account_key
from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.monitoring.metrics import verification_attempts_total

logger = get_logger(__name__)


@dataclass
class AutoVerifyResult:
    """
    Registry lookup outcome.

    Attributes:
        verified: True when the registry matched
        bank_account: Account after the call
        reason_code: Registry mismatch code when not verified
    """

    verified: bool
    bank_account: BankAccount
    reason_code: Optional[str] = None


class AutoVerifyBankAccount:
    """
    Verify holder name, number and IFSC against the bank registry.

    Business rules:
    - One registry call, no retries
    - Mismatch leaves the account untouched
    - The registry call runs outside the database transaction
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        locks: ILockManager,
        bank_verification_service: IBankVerificationService,
        event_publisher: IEventPublisher,
    ):
        self.uow = uow
        self.locks = locks
        self.bank_verification_service = bank_verification_service
        self.event_publisher = event_publisher

    async def execute(self, owner_id: UUID, bank_account_id: UUID) -> AutoVerifyResult:
        """
        Execute auto-verification.

        Raises:
            BankAccountNotFoundError: Missing or not owned
            AlreadyVerifiedError: Account already verified
            GatewayError: Registry unreachable
        """
        async with self.locks.hold(bank_account_key(bank_account_id)):
            # 1. Load and check state
            bank_account = await load_owned_bank_account(
                self.uow.bank_accounts, owner_id, bank_account_id
            )
            if bank_account.is_verified:
                raise AlreadyVerifiedError(str(bank_account_id))
            # Release the read transaction before the external call
            await self.uow.rollback()

            # 2. Registry lookup
            lookup = await self.bank_verification_service.lookup(
                bank_account.account_holder_name,
                bank_account.account_number,
                bank_account.ifsc_code,
            )

            if not lookup.matched:
                verification_attempts_total.labels(
                    method="bank_api", outcome="mismatch"
                ).inc()
                logger.info(
                    "Registry lookup did not match",
                    extra={
                        "bank_account_id": str(bank_account_id),
                        "reason_code": lookup.reason_code,
                    },
                )
                return AutoVerifyResult(
                    verified=False,
                    bank_account=bank_account,
                    reason_code=lookup.reason_code or "NO_MATCH",
                )

            # 3. Re-read under row lock; details may have changed meanwhile
            current = await load_owned_bank_account(
                self.uow.bank_accounts, owner_id, bank_account_id, for_update=True
            )
            if (
                current.account_number != bank_account.account_number
                or current.ifsc_code != bank_account.ifsc_code
            ):
                return AutoVerifyResult(
                    verified=False, bank_account=current, reason_code="DETAILS_CHANGED"
                )

            current.mark_verified(VerificationMethod.BANK_API)
            updated = await self.uow.bank_accounts.update(current)
            await self.uow.verifications.delete(bank_account_id)
            await self.uow.commit()

        verification_attempts_total.labels(method="bank_api", outcome="verified").inc()
        await self.event_publisher.publish(
            VERIFICATION_SUCCEEDED,
            {
                "owner_id": str(owner_id),
                "bank_account_id": str(bank_account_id),
                "method": VerificationMethod.BANK_API.value,
            },
        )
        return AutoVerifyResult(verified=True, bank_account=updated)
