"""
Initiate Penny Drop use case.

Sends a small random amount to the bank account; the owner confirms it
by reading the amount off their statement.
"""

import secrets
from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from tresorier.application.ownership import load_owned_bank_account
from tresorier.application.verification import ensure_can_start
from tresorier.domain.entities.bank_account import VerificationMethod
from tresorier.domain.entities.verification_attempt import VerificationAttempt
from tresorier.domain.exceptions import GatewayDeclinedError
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.i_lock_manager import ILockManager, bank_account_key
from tresorier.domain.services.i_payout_gateway import (
    IPayoutGateway,
    PayoutRequest,
    PayoutStatus,
)
from tresorier.domain.value_objects import utc_now
from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.monitoring.metrics import verification_attempts_total

logger = get_logger(__name__)


@dataclass
class PennyDropChallenge:
    """
    What the client learns about a penny drop (never the amount).

    Attributes:
        reference_id: Gateway payout reference
        expires_in: Seconds until the attempt expires
        attempts_remaining: Confirmations allowed
    """

    reference_id: str
    expires_in: int
    attempts_remaining: int


class InitiatePennyDrop:
    """
    Start micro-deposit verification.

    Business rules:
    - Account must be owned and unverified, with no live attempt
    - Amount is uniform in [min_minor, max_minor] paise
    - Gateway failure stores nothing
    - The expected amount is never returned to clients
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        locks: ILockManager,
        payout_gateway: IPayoutGateway,
        expiry_seconds: int = 86400,
        max_attempts: int = 3,
        min_minor: int = 100,
        max_minor: int = 999,
    ):
        """
        Initialize use case with dependencies.

        Args:
            uow: Unit of work for the request
            locks: Per bank account lock manager
            payout_gateway: Gateway that sends the micro-deposit
            expiry_seconds: Attempt lifetime
            max_attempts: Confirmations allowed
            min_minor: Smallest amount in paise
            max_minor: Largest amount in paise
        """
        self.uow = uow
        self.locks = locks
        self.payout_gateway = payout_gateway
        self.expiry_seconds = expiry_seconds
        self.max_attempts = max_attempts
        self.min_minor = min_minor
        self.max_minor = max_minor

    async def execute(self, owner_id: UUID, bank_account_id: UUID) -> PennyDropChallenge:
        """
        Execute penny drop.

        Raises:
            BankAccountNotFoundError: Missing or not owned
            AlreadyVerifiedError: Account already verified
            RateLimitedError: A live attempt exists
            GatewayError: Transfer could not be made
        """
        async with self.locks.hold(bank_account_key(bank_account_id)):
            # 1. State checks
            bank_account = await load_owned_bank_account(
                self.uow.bank_accounts, owner_id, bank_account_id
            )
            current = await self.uow.verifications.get(bank_account_id)
            ensure_can_start(bank_account, current)
            # Release the read transaction before the external call
            await self.uow.rollback()

            # 2. Send the micro-deposit
            amount_minor = self.min_minor + secrets.randbelow(
                self.max_minor - self.min_minor + 1
            )
            result = await self.payout_gateway.transfer(
                PayoutRequest(
                    amount_minor=amount_minor,
                    account_number=bank_account.account_number,
                    ifsc_code=bank_account.ifsc_code,
                    account_holder_name=bank_account.account_holder_name,
                    idempotency_key=(
                        f"PENNY_DROP_{bank_account_id.hex}_{secrets.token_hex(6)}"
                    ),
                    purpose="verification",
                    narration="Account verification",
                    notes={"bank_account_id": str(bank_account_id)},
                )
            )
            if result.status == PayoutStatus.FAILED:
                verification_attempts_total.labels(
                    method="micro_deposit", outcome="payout_failed"
                ).inc()
                raise GatewayDeclinedError(result.failure_reason or "payout_failed")

            # 3. Remember what was sent
            attempt = VerificationAttempt(
                bank_account_id=bank_account_id,
                method=VerificationMethod.MICRO_DEPOSIT,
                expected_amount_minor=amount_minor,
                reference_id=result.reference_id,
                attempts_remaining=self.max_attempts,
                expires_at=utc_now() + timedelta(seconds=self.expiry_seconds),
            )
            await self.uow.verifications.save(attempt)
            await self.uow.commit()

        verification_attempts_total.labels(method="micro_deposit", outcome="sent").inc()
        logger.info(
            "Penny drop sent",
            extra={
                "bank_account_id": str(bank_account_id),
                "payout_id": result.reference_id,
            },
        )

        return PennyDropChallenge(
            reference_id=result.reference_id,
            expires_in=self.expiry_seconds,
            attempts_remaining=attempt.attempts_remaining,
        )
