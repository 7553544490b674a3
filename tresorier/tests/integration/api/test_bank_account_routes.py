"""
Integration tests for bank account and verification routes.

Usage:
    python -m pytest tresorier/tests/integration/api/test_bank_account_routes.py
"""

from uuid import uuid4

from tests.base import TresorierTest
from tresorier.domain.services.i_payout_gateway import PayoutStatus
from tresorier.infrastructure.auth.jwt_handler import create_access_token


class TestBankAccountRoutes(TresorierTest):
    """Integration tests for bank account API routes."""

    component_name = "tresorier"
    test_category = "integration"

    def setup_test(self):
        self.account_id = uuid4()

    # ================================================================
    # Helper Methods
    # ================================================================

    def _headers(self, account_id=None, phone="+919876543210"):
        token = create_access_token(
            account_id or self.account_id,
            phone=phone,
            email="asha@example.com",
        )
        return {"Authorization": f"Bearer {token}"}

    async def _add(self, client, account_number="123456789012", headers=None):
        return await client.post(
            "/api/bank-accounts",
            json={
                "bank_name": "HDFC Bank",
                "account_holder_name": "Asha Rao",
                "account_number": account_number,
                "ifsc_code": "hdfc0001234",
            },
            headers=headers or self._headers(),
        )

    # ================================================================
    # Test Methods
    # ================================================================

    async def test_add_and_list(self, api):
        """Test the first account becomes primary and numbers are masked."""
        self.reporter.info("Testing bank account registration", context="Test")

        client, _ = api
        first = await self._add(client)
        second = await self._add(client, account_number="555566667777")
        listed = await client.get("/api/bank-accounts", headers=self._headers())

        assert first.status_code == 201
        assert first.json()["is_primary"]
        assert first.json()["account_number"] == "********9012"
        assert first.json()["ifsc_code"] == "HDFC0001234"
        assert not first.json()["is_verified"]
        assert not second.json()["is_primary"]
        assert [b["id"] for b in listed.json()] == [
            first.json()["id"],
            second.json()["id"],
        ]

    async def test_invalid_details(self, api):
        """Test malformed routing details answer 422."""
        client, _ = api

        response = await self._add(client, account_number="12ab")

        assert response.status_code == 422
        assert response.json()["field"] == "account_number"

    async def test_other_owner_gets_404(self, api):
        """Test another caller cannot see or touch the account."""
        client, _ = api
        created = await self._add(client)
        bank_account_id = created.json()["id"]
        stranger = self._headers(account_id=uuid4())

        read = await client.get(f"/api/bank-accounts/{bank_account_id}", headers=stranger)
        edit = await client.patch(
            f"/api/bank-accounts/{bank_account_id}",
            json={"bank_name": "Mine now"},
            headers=stranger,
        )
        remove = await client.delete(
            f"/api/bank-accounts/{bank_account_id}", headers=stranger
        )
        otp = await client.post(
            f"/api/bank-accounts/{bank_account_id}/verification/otp",
            json={"method": "sms"},
            headers=stranger,
        )

        assert [r.status_code for r in (read, edit, remove, otp)] == [404] * 4

    async def test_set_primary_and_remove(self, api):
        """Test switching primary and promotion after removal."""
        client, _ = api
        first = (await self._add(client)).json()
        second = (await self._add(client, account_number="555566667777")).json()

        switched = await client.post(
            f"/api/bank-accounts/{second['id']}/primary", headers=self._headers()
        )
        removed = await client.delete(
            f"/api/bank-accounts/{second['id']}", headers=self._headers()
        )
        remaining = await client.get(
            f"/api/bank-accounts/{first['id']}", headers=self._headers()
        )

        assert switched.json()["is_primary"]
        assert removed.status_code == 204
        assert remaining.json()["is_primary"]

    async def test_otp_verification_flow(self, api):
        """Test a wrong code burns an attempt and the right one verifies."""
        client, container = api
        bank_account_id = (await self._add(client)).json()["id"]
        base = f"/api/bank-accounts/{bank_account_id}/verification"

        challenge = await client.post(
            f"{base}/otp", json={"method": "sms"}, headers=self._headers()
        )
        resend = await client.post(
            f"{base}/otp", json={"method": "sms"}, headers=self._headers()
        )
        code = container._otp_dispatcher.last_code
        wrong = "1" * len(code) if code != "1" * len(code) else "2" * len(code)

        miss = await client.post(
            f"{base}/otp/verify", json={"code": wrong}, headers=self._headers()
        )
        hit = await client.post(
            f"{base}/otp/verify", json={"code": code}, headers=self._headers()
        )

        assert challenge.status_code == 201
        assert challenge.json()["destination"] == "******3210"
        assert "code" not in challenge.json()
        assert resend.status_code == 429
        assert int(resend.headers["Retry-After"]) > 0
        assert miss.status_code == 400
        assert miss.json()["remaining_attempts"] == 2
        assert hit.status_code == 200
        assert hit.json()["is_verified"]
        assert hit.json()["verification_method"] == "sms"

    async def test_otp_without_destination(self, api):
        """Test an SMS OTP needs a phone on the token."""
        client, _ = api
        headers = self._headers(phone=None)
        bank_account_id = (await self._add(client, headers=headers)).json()["id"]

        response = await client.post(
            f"/api/bank-accounts/{bank_account_id}/verification/otp",
            json={"method": "sms"},
            headers=headers,
        )

        assert response.status_code == 422

    async def test_penny_drop_flow(self, api):
        """Test the micro-deposit amount verifies the account."""
        client, container = api
        bank_account_id = (await self._add(client)).json()["id"]
        base = f"/api/bank-accounts/{bank_account_id}/verification"

        challenge = await client.post(f"{base}/penny-drop", headers=self._headers())
        sent = container._payout_gateway.last_request.amount_minor
        confirmed = await client.post(
            f"{base}/penny-drop/confirm",
            json={"amount": f"{sent // 100}.{sent % 100:02d}"},
            headers=self._headers(),
        )

        assert challenge.status_code == 201
        assert challenge.json()["reference_id"].startswith("pout_test_")
        assert 100 <= sent <= 999
        assert confirmed.status_code == 200
        assert confirmed.json()["verification_method"] == "micro_deposit"

    async def test_penny_drop_reset(self, api):
        """Test reset discards the live amount."""
        client, container = api
        container._payout_gateway.status = PayoutStatus.PROCESSING
        bank_account_id = (await self._add(client)).json()["id"]
        base = f"/api/bank-accounts/{bank_account_id}/verification"
        await client.post(f"{base}/penny-drop", headers=self._headers())

        reset = await client.delete(base, headers=self._headers())
        again = await client.delete(base, headers=self._headers())
        confirm = await client.post(
            f"{base}/penny-drop/confirm",
            json={"amount": "1.00"},
            headers=self._headers(),
        )

        assert reset.json() == {"reset": True}
        assert again.json() == {"reset": False}
        assert confirm.status_code == 404

    async def test_routing_edit_resets_verification(self, api):
        """Test a new account number drops verified state."""
        client, _ = api
        bank_account_id = (await self._add(client)).json()["id"]
        await client.post(
            f"/api/bank-accounts/{bank_account_id}/verification/auto",
            headers=self._headers(),
        )

        renamed = await client.patch(
            f"/api/bank-accounts/{bank_account_id}",
            json={"bank_name": "HDFC"},
            headers=self._headers(),
        )
        moved = await client.patch(
            f"/api/bank-accounts/{bank_account_id}",
            json={"account_number": "999988887777"},
            headers=self._headers(),
        )

        assert renamed.json()["is_verified"]
        assert not moved.json()["is_verified"]
        assert moved.json()["verification_method"] == "none"


if __name__ == "__main__":
    TestBankAccountRoutes.run_as_main()
