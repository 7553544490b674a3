"""
Authentication dependencies for bearer tokens.

User routes take the caller's identity from the JWT; internal routes
require the shared service token; operator routes require role admin.
"""

import hmac
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tresorier.config.settings import get_settings
from tresorier.domain.entities.account import Account
from tresorier.domain.exceptions import AuthenticationError, ForbiddenError
from tresorier.infrastructure.auth.jwt_handler import decode_access_token

# Bearer token security scheme (missing header handled as 401 below)
security = HTTPBearer(auto_error=False)


def _token(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    return credentials.credentials


async def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Account:
    """
    Resolve the authenticated account from the JWT.

    Args:
        credentials: HTTP Authorization header with Bearer token

    Returns:
        Account identity

    Raises:
        AuthenticationError: Missing, invalid or expired token
    """
    return decode_access_token(_token(credentials))


async def require_admin(
    account: Account = Depends(get_current_account),
) -> Account:
    """Allow back-office operators only."""
    if not account.is_admin:
        raise ForbiddenError("Operator role required")
    return account


async def require_internal_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> None:
    """Allow trusted services holding INTERNAL_API_TOKEN."""
    token = _token(credentials)
    expected = get_settings().INTERNAL_API_TOKEN
    if not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        raise AuthenticationError("Invalid service token")
