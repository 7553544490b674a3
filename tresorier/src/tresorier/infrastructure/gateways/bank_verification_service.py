"""
Bank registry lookup implementations for automatic verification.
"""

import asyncio
from typing import Optional

import aiohttp

from tresorier.domain.exceptions import GatewayError, GatewayTimeoutError
from tresorier.domain.services.i_bank_verification_service import (
    BankLookupResult,
    IBankVerificationService,
)
from tresorier.infrastructure.monitoring.logger import get_logger
from tresorier.infrastructure.monitoring.metrics import gateway_requests_total

logger = get_logger(__name__)


class HttpBankVerificationService(IBankVerificationService):
    """
    Calls an external account-validation API.

    Expects POST {base_url}/verify returning
    {"matched": bool, "reason_code": str|null, "registered_name": str|null}.
    """

    def __init__(
        self,
        base_url: str,
        total_timeout: float = 30.0,
        connect_timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.total_timeout = total_timeout
        self.timeout = aiohttp.ClientTimeout(
            total=total_timeout,
            connect=connect_timeout,
        )
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def lookup(
        self,
        account_holder_name: str,
        account_number: str,
        ifsc_code: str,
    ) -> BankLookupResult:
        """
        Match holder name, number and IFSC against the registry.

        Raises:
            GatewayTimeoutError: Registry did not answer in time
            GatewayError: Registry unreachable or returned an error
        """
        session = await self._get_session()
        payload = {
            "account_holder_name": account_holder_name,
            "account_number": account_number,
            "ifsc": ifsc_code,
        }

        try:
            async with session.post(f"{self.base_url}/verify", json=payload) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    gateway_requests_total.labels(
                        gateway="bank_registry", operation="lookup", status="error"
                    ).inc()
                    raise GatewayError(
                        f"Bank registry error: {body[:200]}",
                        status_code=resp.status,
                    )
                data = await resp.json()

        except asyncio.TimeoutError as e:
            gateway_requests_total.labels(
                gateway="bank_registry", operation="lookup", status="timeout"
            ).inc()
            raise GatewayTimeoutError("bank_lookup", self.total_timeout) from e

        except aiohttp.ClientError as e:
            gateway_requests_total.labels(
                gateway="bank_registry", operation="lookup", status="error"
            ).inc()
            logger.error(f"Bank registry unreachable: {e}")
            raise GatewayError("Bank registry unreachable") from e

        gateway_requests_total.labels(
            gateway="bank_registry", operation="lookup", status="success"
        ).inc()

        return BankLookupResult(
            matched=bool(data.get("matched")),
            reason_code=data.get("reason_code"),
            registered_name=data.get("registered_name"),
        )

    async def close(self) -> None:
        """Close HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None


class OfflineBankVerificationService(IBankVerificationService):
    """
    Rule-based check used when no registry is configured.

    Accepts any account with an IFSC code and an account number of at
    least ten digits.
    """

    MIN_ACCOUNT_DIGITS = 10

    async def lookup(
        self,
        account_holder_name: str,
        account_number: str,
        ifsc_code: str,
    ) -> BankLookupResult:
        if not ifsc_code:
            return BankLookupResult(matched=False, reason_code="IFSC_MISSING")

        if len(account_number) < self.MIN_ACCOUNT_DIGITS:
            return BankLookupResult(
                matched=False, reason_code="ACCOUNT_NUMBER_TOO_SHORT"
            )

        return BankLookupResult(matched=True, registered_name=account_holder_name)
