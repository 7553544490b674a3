"""
JWT token handler for authentication.

Tokens are issued by the marketplace identity provider; this service only
validates them. create_access_token exists for tooling and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from tresorier.config.settings import get_settings
from tresorier.domain.entities.account import Account, AccountRole
from tresorier.domain.exceptions.auth import ExpiredTokenError, InvalidTokenError


def create_access_token(
    account_id: UUID,
    role: AccountRole = AccountRole.CUSTOMER,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    expires_in: Optional[timedelta] = None,
) -> str:
    """
    Create JWT access token for an account.

    Args:
        account_id: Account UUID
        role: Marketplace role
        phone: Phone number claim (SMS OTP destination)
        email: Email claim (email OTP destination)
        expires_in: Override of JWT_EXPIRATION_HOURS

    Returns:
        Encoded JWT token string
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (expires_in or timedelta(hours=settings.JWT_EXPIRATION_HOURS))

    payload = {
        "sub": str(account_id),
        "role": AccountRole(role).value,
        "iat": now,
        "exp": expire,
        "type": "access",
    }
    if phone:
        payload["phone"] = phone
    if email:
        payload["email"] = email

    return jwt.encode(
        payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )


def decode_access_token(token: str) -> Account:
    """
    Decode and validate JWT access token.

    Args:
        token: JWT token string

    Returns:
        Account built from the token claims

    Raises:
        ExpiredTokenError: If token has expired
        InvalidTokenError: If token is invalid or malformed
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        raise ExpiredTokenError()
    except JWTError:
        raise InvalidTokenError()

    try:
        return Account(
            id=UUID(payload["sub"]),
            role=AccountRole(payload.get("role", AccountRole.CUSTOMER.value)),
            phone=payload.get("phone"),
            email=payload.get("email"),
        )
    except (KeyError, ValueError):
        raise InvalidTokenError()
