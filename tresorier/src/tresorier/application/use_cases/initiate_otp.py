"""
Initiate OTP use case.

Starts SMS or email verification of a bank account.
"""

from dataclasses import dataclass
from datetime import timedelta
from uuid import UUID

from tresorier.application.ownership import load_owned_bank_account
from tresorier.application.verification import (
    ensure_can_start,
    generate_code,
    hash_code,
)
from tresorier.domain.entities.account import Account
from tresorier.domain.entities.bank_account import VerificationMethod
from tresorier.domain.entities.verification_attempt import (
    OTP_METHODS,
    VerificationAttempt,
)
from tresorier.domain.exceptions import ValidationError
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.i_lock_manager import ILockManager, bank_account_key
from tresorier.domain.services.i_otp_dispatcher import IOtpDispatcher
from tresorier.domain.value_objects import utc_now
from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.monitoring.metrics import verification_attempts_total
from tresorier.infrastructure.notifications import mask_destination

logger = get_logger(__name__)


@dataclass
class OtpChallenge:
    """
    What the client learns about a sent code.

    Attributes:
        method: sms or email
        expires_in: Seconds until the code expires
        attempts_remaining: Checks allowed
        destination: Masked phone or email
    """

    method: VerificationMethod
    expires_in: int
    attempts_remaining: int
    destination: str


class InitiateOtp:
    """
    Send a one-time code to the caller's phone or email.

    Business rules:
    - Account must be owned by the caller and unverified
    - At most one live attempt per bank account
    - Only the HMAC of the code is stored
    - Delivery is fire-and-forget
    """

    def __init__(
        self,
        uow: IUnitOfWork,
        locks: ILockManager,
        otp_dispatcher: IOtpDispatcher,
        hash_secret: str,
        code_length: int = 6,
        expiry_seconds: int = 600,
        max_attempts: int = 3,
    ):
        """
        Initialize use case with dependencies.

        Args:
            uow: Unit of work for the request
            locks: Per bank account lock manager
            otp_dispatcher: SMS/email channel
            hash_secret: HMAC key for code hashes
            code_length: Digits per code
            expiry_seconds: Code lifetime
            max_attempts: Checks allowed per code
        """
        self.uow = uow
        self.locks = locks
        self.otp_dispatcher = otp_dispatcher
        self.hash_secret = hash_secret
        self.code_length = code_length
        self.expiry_seconds = expiry_seconds
        self.max_attempts = max_attempts

    async def execute(
        self,
        account: Account,
        bank_account_id: UUID,
        method: VerificationMethod | str,
    ) -> OtpChallenge:
        """
        Execute initiate.

        Raises:
            ValidationError: Unsupported method or no destination on file
            BankAccountNotFoundError: Missing or not owned
            AlreadyVerifiedError: Account already verified
            RateLimitedError: A live attempt exists
        """
        # 1. Resolve channel and destination
        try:
            method = VerificationMethod(method)
        except ValueError:
            raise ValidationError("method", f"Unknown method: {method}")
        if method not in OTP_METHODS:
            raise ValidationError("method", "OTP method must be sms or email")

        destination = account.phone if method == VerificationMethod.SMS else account.email
        if not destination:
            raise ValidationError("method", f"No {method.value} destination on file")

        async with self.locks.hold(bank_account_key(bank_account_id)):
            # 2. State checks
            bank_account = await load_owned_bank_account(
                self.uow.bank_accounts, account.id, bank_account_id, for_update=True
            )
            current = await self.uow.verifications.get(bank_account_id)
            ensure_can_start(bank_account, current)

            # 3. Store hashed code
            code = generate_code(self.code_length)
            attempt = VerificationAttempt(
                bank_account_id=bank_account_id,
                method=method,
                code_hash=hash_code(self.hash_secret, bank_account_id, code),
                attempts_remaining=self.max_attempts,
                expires_at=utc_now() + timedelta(seconds=self.expiry_seconds),
                destination_hint=mask_destination(destination),
            )
            await self.uow.verifications.save(attempt)
            await self.uow.commit()

        # 4. Deliver outside the lock
        await self.otp_dispatcher.send(method, destination, code)

        verification_attempts_total.labels(method=method.value, outcome="sent").inc()
        logger.info(
            "OTP issued",
            extra={"bank_account_id": str(bank_account_id), "method": method.value},
        )

        return OtpChallenge(
            method=method,
            expires_in=self.expiry_seconds,
            attempts_remaining=attempt.attempts_remaining,
            destination=attempt.destination_hint,
        )
