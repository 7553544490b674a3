"""
Authentication infrastructure.
"""

from tresorier.infrastructure.auth.jwt_handler import (
    create_access_token,
    decode_access_token,
)

__all__ = ["create_access_token", "decode_access_token"]
