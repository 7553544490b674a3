"""
Payment gateway webhook signature verification.
"""

import hashlib
import hmac

from tresorier.domain.exceptions import InvalidSignatureError


def compute_signature(secret: str, body: bytes) -> str:
    """Hex HMAC-SHA256 of the raw request body."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, body: bytes, signature: str | None) -> None:
    """
    Check a webhook signature in constant time.

    Raises:
        InvalidSignatureError: Missing or wrong signature
    """
    if not signature:
        raise InvalidSignatureError()

    expected = compute_signature(secret, body)
    if not hmac.compare_digest(expected, signature.strip()):
        raise InvalidSignatureError()
