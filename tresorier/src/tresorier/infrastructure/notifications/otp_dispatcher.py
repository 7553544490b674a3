"""
OTP dispatch adapters.
"""

from typing import Optional

import httpx

from tresorier.domain.entities.bank_account import VerificationMethod
from tresorier.domain.services.i_otp_dispatcher import IOtpDispatcher
from tresorier.infrastructure.monitoring.logger import get_logger

logger = get_logger(__name__)


def mask_destination(destination: str) -> str:
    """Hide most of a phone number or email address."""
    if "@" in destination:
        local, _, domain = destination.partition("@")
        return f"{local[:1]}***@{domain}"
    return f"******{destination[-4:]}" if len(destination) > 4 else "****"


class HttpOtpDispatcher(IOtpDispatcher):
    """Hands codes to an SMS/email delivery service over HTTP."""

    def __init__(self, dispatch_url: str, timeout: float = 5.0):
        self.dispatch_url = dispatch_url.rstrip("/")
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def send(
        self,
        channel: VerificationMethod,
        destination: str,
        code: str,
    ) -> None:
        body = {
            "channel": channel.value,
            "destination": destination,
            "message": f"Your bank account verification code is {code}",
        }
        try:
            response = await self.client.post(self.dispatch_url, json=body)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(
                f"OTP delivery failed via {channel.value} "
                f"to {mask_destination(destination)}: {e}"
            )
            return

        logger.info(f"OTP sent via {channel.value} to {mask_destination(destination)}")

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None


class LoggingOtpDispatcher(IOtpDispatcher):
    """
    Development dispatcher: logs instead of sending.

    The code itself is logged only when log_codes is set.
    """

    def __init__(self, log_codes: bool = False):
        self.log_codes = log_codes

    async def send(
        self,
        channel: VerificationMethod,
        destination: str,
        code: str,
    ) -> None:
        message = f"OTP via {channel.value} to {mask_destination(destination)}"
        if self.log_codes:
            message += f": {code}"
        logger.info(message)
