"""
Helpers shared by the verification use cases.
"""

import hashlib
import hmac
import secrets
from typing import Callable, Optional
from uuid import UUID

from tresorier.domain.entities.bank_account import BankAccount, VerificationMethod
from tresorier.domain.entities.verification_attempt import VerificationAttempt
from tresorier.domain.exceptions import (
    AlreadyVerifiedError,
    RateLimitedError,
    TresorierException,
    VerificationExpiredError,
    VerificationNotFoundError,
)
from tresorier.domain.repositories.i_unit_of_work import IUnitOfWork
from tresorier.domain.services.i_event_publisher import (
    VERIFICATION_FAILED,
    VERIFICATION_SUCCEEDED,
    IEventPublisher,
)
from tresorier.domain.value_objects import utc_now
from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.monitoring.metrics import verification_attempts_total

logger = get_logger(__name__)


def generate_code(length: int = 6) -> str:
    """Uniform random numeric code, leading zeros kept."""
    return "".join(secrets.choice("0123456789") for _ in range(length))


def hash_code(secret: str, bank_account_id: UUID, code: str) -> str:
    """HMAC-SHA256 of a code, bound to the bank account."""
    message = f"{bank_account_id}:{code.strip()}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def ensure_can_start(
    bank_account: BankAccount, current: Optional[VerificationAttempt]
) -> None:
    """
    Refuse a new attempt for verified accounts or while one is live.

    Raises:
        AlreadyVerifiedError: Account already verified
        RateLimitedError: A live attempt exists
    """
    if bank_account.is_verified:
        raise AlreadyVerifiedError(str(bank_account.id))

    now = utc_now()
    if current is not None and current.is_live(now):
        raise RateLimitedError(
            str(bank_account.id), current.seconds_until_expiry(now)
        )


async def load_live_attempt(
    uow: IUnitOfWork,
    bank_account_id: UUID,
    methods: tuple,
) -> VerificationAttempt:
    """
    Fetch the attempt a check runs against.

    An expired attempt is deleted and committed before raising, so the
    caller sees a clean unverified state afterwards.

    Raises:
        VerificationNotFoundError: No attempt of the given methods
        VerificationExpiredError: Attempt window closed
    """
    attempt = await uow.verifications.get(bank_account_id)
    if attempt is None or attempt.method not in methods or attempt.is_exhausted:
        raise VerificationNotFoundError(str(bank_account_id))

    if attempt.is_expired():
        await uow.verifications.delete(bank_account_id)
        await uow.commit()
        verification_attempts_total.labels(
            method=attempt.method.value, outcome="expired"
        ).inc()
        raise VerificationExpiredError(str(bank_account_id))

    return attempt


async def settle_check(
    uow: IUnitOfWork,
    event_publisher: IEventPublisher,
    bank_account: BankAccount,
    attempt: VerificationAttempt,
    matched: bool,
    mismatch_error: Callable[[int], TresorierException],
) -> BankAccount:
    """
    Apply the outcome of one code or amount check and commit.

    Returns:
        Verified bank account on a match

    Raises:
        The error built by mismatch_error(remaining) on a mismatch
    """
    method: VerificationMethod = attempt.method

    if not matched:
        remaining = attempt.record_failure()
        if remaining == 0:
            await uow.verifications.delete(bank_account.id)
        else:
            await uow.verifications.save(attempt)
        await uow.commit()

        verification_attempts_total.labels(
            method=method.value,
            outcome="exhausted" if remaining == 0 else "mismatch",
        ).inc()
        if remaining == 0:
            logger.info(
                "Verification attempts exhausted",
                extra={"bank_account_id": str(bank_account.id)},
            )
            await event_publisher.publish(
                VERIFICATION_FAILED,
                {
                    "owner_id": str(bank_account.owner_id),
                    "bank_account_id": str(bank_account.id),
                    "method": method.value,
                },
            )
        raise mismatch_error(remaining)

    bank_account.mark_verified(method)
    updated = await uow.bank_accounts.update(bank_account)
    await uow.verifications.delete(bank_account.id)
    await uow.commit()

    verification_attempts_total.labels(method=method.value, outcome="verified").inc()
    logger.info(
        "Bank account verified",
        extra={"bank_account_id": str(bank_account.id), "method": method.value},
    )
    await event_publisher.publish(
        VERIFICATION_SUCCEEDED,
        {
            "owner_id": str(bank_account.owner_id),
            "bank_account_id": str(bank_account.id),
            "method": method.value,
        },
    )
    return updated
