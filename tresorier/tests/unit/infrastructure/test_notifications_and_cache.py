"""
Unit tests for OTP dispatch and the in-process balance cache.

Usage:
    python -m pytest tresorier/tests/unit/infrastructure/test_notifications_and_cache.py
"""

import json
from decimal import Decimal
from uuid import uuid4

import httpx
import pytest

from tests.base import TresorierTest
from tresorier.domain.entities.bank_account import VerificationMethod
from tresorier.domain.services.balance_snapshot import BalanceSnapshot
from tresorier.infrastructure.cache.memory_balance_cache import MemoryBalanceCache
from tresorier.infrastructure.notifications import (
    HttpOtpDispatcher,
    LoggingOtpDispatcher,
    mask_destination,
)


class TestOtpDispatch(TresorierTest):
    """Unit tests for OTP dispatchers."""

    component_name = "tresorier"
    test_category = "unit"

    @pytest.mark.parametrize(
        "destination,masked",
        [
            ("+919876543210", "******3210"),
            ("asha@example.com", "a***@example.com"),
            ("123", "****"),
        ],
    )
    def test_mask_destination(self, destination, masked):
        """Test phones keep the last four digits and emails the first letter."""
        assert mask_destination(destination) == masked

    async def test_http_dispatcher_posts_message(self):
        """Test the code is handed to the delivery service."""
        self.reporter.info("Testing HTTP OTP dispatch", context="Test")

        received = []

        def handler(request: httpx.Request) -> httpx.Response:
            received.append(json.loads(request.content))
            return httpx.Response(202)

        dispatcher = HttpOtpDispatcher("http://notify.test/otp")
        dispatcher._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

        await dispatcher.send(VerificationMethod.SMS, "+919876543210", "482913")
        await dispatcher.close()

        assert received[0]["channel"] == "sms"
        assert received[0]["destination"] == "+919876543210"
        assert "482913" in received[0]["message"]

    async def test_http_dispatcher_swallows_delivery_failure(self):
        """Test a failed delivery does not fail the initiate call."""
        dispatcher = HttpOtpDispatcher("http://notify.test/otp")
        dispatcher._client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(500))
        )

        await dispatcher.send(VerificationMethod.EMAIL, "asha@example.com", "000111")
        await dispatcher.close()

    async def test_logging_dispatcher_hides_codes(self, caplog):
        """Test codes are only logged when explicitly enabled."""
        with caplog.at_level("INFO"):
            await LoggingOtpDispatcher().send(
                VerificationMethod.SMS, "+919876543210", "482913"
            )
            await LoggingOtpDispatcher(log_codes=True).send(
                VerificationMethod.SMS, "+919876543210", "135790"
            )

        assert "482913" not in caplog.text
        assert "135790" in caplog.text
        assert "+919876543210" not in caplog.text


class TestMemoryBalanceCache(TresorierTest):
    """Unit tests for MemoryBalanceCache."""

    component_name = "tresorier"
    test_category = "unit"

    def _snapshot(self, account_id, wallet: str) -> BalanceSnapshot:
        return BalanceSnapshot(
            account_id=account_id,
            wallet_balance=Decimal(wallet),
            available_earnings=Decimal("0.00"),
            pending_wallet_debits=Decimal("0.00"),
        )

    async def test_set_get_invalidate(self):
        """Test a stored snapshot is served until invalidated."""
        cache = MemoryBalanceCache(ttl_seconds=60)
        account_id = uuid4()

        assert await cache.get(account_id) is None

        await cache.set(account_id, self._snapshot(account_id, "10.00"))
        cached = await cache.get(account_id)
        assert cached.wallet_balance == Decimal("10.00")

        await cache.invalidate(account_id)
        assert await cache.get(account_id) is None

    async def test_bounded_size(self):
        """Test the cache evicts beyond maxsize."""
        cache = MemoryBalanceCache(maxsize=2, ttl_seconds=60)
        ids = [uuid4() for _ in range(3)]

        for account_id in ids:
            await cache.set(account_id, self._snapshot(account_id, "1.00"))

        assert await cache.get(ids[0]) is None
        assert await cache.get(ids[2]) is not None


if __name__ == "__main__":
    TestOtpDispatch.run_as_main()
