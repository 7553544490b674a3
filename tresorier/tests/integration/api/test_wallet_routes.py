"""
Integration tests for wallet, withdrawal, webhook and operator routes.

Tests the HTTP surface with httpx.AsyncClient over the ASGI app, a
SQLite database and a programmable payout gateway.

Usage:
    python -m pytest tresorier/tests/integration/api/test_wallet_routes.py
"""

import json
from uuid import uuid4

from tests.base import TresorierTest
from tresorier.domain.entities.account import AccountRole
from tresorier.domain.exceptions import GatewayDeclinedError
from tresorier.domain.services.i_payout_gateway import PayoutStatus
from tresorier.infrastructure.auth.jwt_handler import create_access_token
from tresorier.infrastructure.gateways import compute_signature


class TestWalletRoutes(TresorierTest):
    """Integration tests for wallet and payout API routes."""

    component_name = "tresorier"
    test_category = "integration"

    def setup_test(self):
        self.account_id = uuid4()

    # ================================================================
    # Helper Methods
    # ================================================================

    def _headers(self, role: AccountRole = AccountRole.CUSTOMER, account_id=None):
        token = create_access_token(
            account_id or self.account_id,
            role=role,
            phone="+919876543210",
            email="asha@example.com",
        )
        return {"Authorization": f"Bearer {token}"}

    def _internal(self, settings):
        return {"Authorization": f"Bearer {settings.INTERNAL_API_TOKEN}"}

    async def _deposit(self, client, settings, amount: str, reference: str):
        return await client.post(
            "/api/internal/deposits",
            json={
                "account_id": str(self.account_id),
                "amount": amount,
                "gateway_reference": reference,
            },
            headers=self._internal(settings),
        )

    async def _verified_bank_account(self, client) -> str:
        created = await client.post(
            "/api/bank-accounts",
            json={
                "bank_name": "HDFC Bank",
                "account_holder_name": "Asha Rao",
                "account_number": "123456789012",
                "ifsc_code": "HDFC0001234",
            },
            headers=self._headers(),
        )
        bank_account_id = created.json()["id"]

        verified = await client.post(
            f"/api/bank-accounts/{bank_account_id}/verification/auto",
            headers=self._headers(),
        )
        assert verified.json()["verified"]
        return bank_account_id

    async def _withdraw(self, client, bank_account_id: str, amount: str, key=None):
        headers = self._headers()
        if key:
            headers["Idempotency-Key"] = key
        return await client.post(
            "/api/withdrawals",
            json={"amount": amount, "bank_account_id": bank_account_id},
            headers=headers,
        )

    async def _webhook(self, client, settings, payload: dict, signature=None):
        body = json.dumps(payload).encode("utf-8")
        return await client.post(
            "/api/webhooks/payments",
            content=body,
            headers={
                "Content-Type": "application/json",
                "X-Razorpay-Signature": signature
                or compute_signature(settings.PAYMENT_WEBHOOK_SECRET, body),
            },
        )

    # ================================================================
    # Test Methods
    # ================================================================

    async def test_health(self, api):
        """Test health reports the database and component status."""
        self.reporter.info("Testing health endpoint", context="Test")

        client, _ = api
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["cache"]["type"] == "memory"
        assert data["components"]["expiry_sweeper"]["running"] is False

    async def test_metrics_exposed(self, api):
        """Test the Prometheus endpoint answers."""
        client, _ = api

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "tresorier" in response.text

    async def test_request_id_echoed(self, api):
        """Test a valid request id is reused and a malformed one replaced."""
        client, _ = api

        kept = await client.get("/health", headers={"X-Request-ID": "req-abc.1"})
        replaced = await client.get(
            "/health", headers={"X-Request-ID": "not a valid id"}
        )

        assert kept.headers["X-Request-ID"] == "req-abc.1"
        assert replaced.headers["X-Request-ID"] != "not a valid id"
        assert len(replaced.headers["X-Request-ID"]) == 36

    async def test_balance_requires_token(self, api):
        """Test a missing or broken token answers 401."""
        client, _ = api

        missing = await client.get("/api/wallet/balance")
        broken = await client.get(
            "/api/wallet/balance", headers={"Authorization": "Bearer nope"}
        )

        assert missing.status_code == 401
        assert broken.status_code == 401
        assert missing.headers["WWW-Authenticate"] == "Bearer"

    async def test_empty_balance(self, api):
        """Test a new account has zero balances."""
        client, _ = api

        response = await client.get("/api/wallet/balance", headers=self._headers())

        assert response.status_code == 200
        assert response.json() == {
            "wallet_balance": "0.00",
            "available_earnings": "0.00",
            "withdrawable_balance": "0.00",
            "pending_withdrawals": "0.00",
            "currency": "INR",
        }

    async def test_internal_deposit_is_idempotent(self, api, test_settings):
        """Test deposits need the service token and replay with 200."""
        client, _ = api

        refused = await client.post(
            "/api/internal/deposits",
            json={
                "account_id": str(self.account_id),
                "amount": "10.00",
                "gateway_reference": "pay_x",
            },
            headers={"Authorization": "Bearer wrong-token"},
        )
        first = await self._deposit(client, test_settings, "750.25", "pay_api_1")
        again = await self._deposit(client, test_settings, "750.25", "pay_api_1")
        balance = await client.get("/api/wallet/balance", headers=self._headers())

        assert refused.status_code == 401
        assert first.status_code == 201
        assert again.status_code == 200
        assert again.json()["duplicate"]
        assert again.json()["entry"]["id"] == first.json()["entry"]["id"]
        assert balance.json()["wallet_balance"] == "750.25"

    async def test_transactions_paged(self, api, test_settings):
        """Test history is newest first with totals."""
        client, _ = api
        for i in range(3):
            await self._deposit(client, test_settings, f"{i + 1}00.00", f"pay_p{i}")

        response = await client.get(
            "/api/wallet/transactions?limit=2", headers=self._headers()
        )
        too_big = await client.get(
            "/api/wallet/transactions?limit=500", headers=self._headers()
        )

        data = response.json()
        assert data["total"] == 3
        assert [item["amount"] for item in data["items"]] == ["300.00", "200.00"]
        assert too_big.status_code == 422

    async def test_withdrawal_completes(self, api, test_settings):
        """Test a processed payout answers 201 and debits the wallet."""
        client, container = api
        await self._deposit(client, test_settings, "1000.00", "pay_w1")
        bank_account_id = await self._verified_bank_account(client)

        response = await self._withdraw(client, bank_account_id, "400.00", key="k-1")
        replay = await self._withdraw(client, bank_account_id, "400.00", key="k-1")
        balance = await client.get("/api/wallet/balance", headers=self._headers())

        assert response.status_code == 201
        assert response.json()["entry"]["status"] == "completed"
        assert response.json()["entry"]["amount"] == "-400.00"
        assert response.json()["mode"] == "gateway"
        assert replay.status_code == 200
        assert replay.json()["replayed"]
        assert len(container._payout_gateway.requests) == 1
        assert balance.json()["wallet_balance"] == "600.00"

    async def test_withdrawal_rejections(self, api, test_settings):
        """Test refusals map to their status codes."""
        client, _ = api
        await self._deposit(client, test_settings, "500.00", "pay_w2")
        bank_account_id = await self._verified_bank_account(client)

        too_small = await self._withdraw(client, bank_account_id, "99.99")
        too_much = await self._withdraw(client, bank_account_id, "600.00")
        unknown = await self._withdraw(client, str(uuid4()), "200.00")

        assert too_small.status_code == 422
        assert too_small.json()["error"] == "OUT_OF_BOUNDS"
        assert too_much.status_code == 402
        assert too_much.json()["available"] == "500.00"
        assert unknown.status_code == 404

    async def test_unverified_destination_refused(self, api, test_settings):
        """Test withdrawing to an unverified account answers 403."""
        client, container = api
        await self._deposit(client, test_settings, "500.00", "pay_w3")
        created = await client.post(
            "/api/bank-accounts",
            json={
                "bank_name": "SBI",
                "account_holder_name": "Asha Rao",
                "account_number": "998877665544",
                "ifsc_code": "SBIN0000001",
            },
            headers=self._headers(),
        )

        response = await self._withdraw(client, created.json()["id"], "200.00")

        assert response.status_code == 403
        assert response.json()["error"] == "ACCOUNT_NOT_VERIFIED"
        assert container._payout_gateway.requests == []

    async def test_declined_payout_releases_funds(self, api, test_settings):
        """Test a gateway decline answers 502 and leaves the balance intact."""
        client, container = api
        container._payout_gateway.error = GatewayDeclinedError("Invalid IFSC", 400)
        await self._deposit(client, test_settings, "500.00", "pay_w4")
        bank_account_id = await self._verified_bank_account(client)

        response = await self._withdraw(client, bank_account_id, "300.00")
        balance = await client.get("/api/wallet/balance", headers=self._headers())

        assert response.status_code == 502
        assert response.json()["error"] == "GATEWAY_DECLINED"
        assert "entry_id" in response.json()
        assert balance.json()["withdrawable_balance"] == "500.00"
        assert balance.json()["pending_withdrawals"] == "0.00"

    async def test_processing_payout_settled_by_webhook(self, api, test_settings):
        """Test 202 on an accepted payout and settlement by callback."""
        client, container = api
        container._payout_gateway.status = PayoutStatus.PROCESSING
        await self._deposit(client, test_settings, "800.00", "pay_w5")
        bank_account_id = await self._verified_bank_account(client)

        response = await self._withdraw(client, bank_account_id, "300.00")
        entry_id = response.json()["entry"]["id"]
        pending = await client.get("/api/wallet/balance", headers=self._headers())

        payload = {
            "event": "payout.processed",
            "payload": {
                "payout": {
                    "entity": {
                        "id": "pout_api_1",
                        "reference_id": entry_id,
                        "status": "processed",
                    }
                }
            },
        }
        settled = await self._webhook(client, test_settings, payload)
        duplicate = await self._webhook(client, test_settings, payload)
        balance = await client.get("/api/wallet/balance", headers=self._headers())

        assert response.status_code == 202
        assert pending.json()["pending_withdrawals"] == "300.00"
        assert pending.json()["withdrawable_balance"] == "500.00"
        assert settled.json()["status"] == "processed"
        assert duplicate.json()["status"] == "duplicate"
        assert balance.json()["wallet_balance"] == "500.00"
        assert balance.json()["pending_withdrawals"] == "0.00"

    async def test_payment_webhook_credits_wallet(self, api, test_settings):
        """Test a signed capture credits once; a bad signature answers 401."""
        client, _ = api
        payload = {
            "event": "payment.captured",
            "payload": {
                "payment": {
                    "entity": {
                        "id": "pay_hook_1",
                        "amount": 12550,
                        "currency": "INR",
                        "notes": {"account_id": str(self.account_id)},
                    }
                }
            },
        }

        forged = await self._webhook(client, test_settings, payload, signature="0" * 64)
        first = await self._webhook(client, test_settings, payload)
        again = await self._webhook(client, test_settings, payload)
        balance = await client.get("/api/wallet/balance", headers=self._headers())

        assert forged.status_code == 401
        assert first.json()["status"] == "processed"
        assert again.json()["status"] == "duplicate"
        assert balance.json()["wallet_balance"] == "125.50"

    async def test_recharge_checkout(self, api, test_settings):
        """Test a recharge order is paid through the signed checkout response."""
        self.reporter.info("Testing checkout recharge", context="Test")

        client, _ = api
        created = await client.post(
            "/api/wallet/recharge/orders",
            json={"amount": "250.00"},
            headers=self._headers(),
        )
        order = created.json()
        pending = await client.get("/api/wallet/balance", headers=self._headers())

        body = {
            "razorpay_order_id": order["order_id"],
            "razorpay_payment_id": "pay_ck_1",
            "razorpay_signature": "0" * 64,
        }
        forged = await client.post(
            "/api/wallet/recharge/verify", json=body, headers=self._headers()
        )

        body["razorpay_signature"] = compute_signature(
            test_settings.RAZORPAY_KEY_SECRET,
            f"{order['order_id']}|pay_ck_1".encode("utf-8"),
        )
        verified = await client.post(
            "/api/wallet/recharge/verify", json=body, headers=self._headers()
        )
        again = await client.post(
            "/api/wallet/recharge/verify", json=body, headers=self._headers()
        )
        balance = await client.get("/api/wallet/balance", headers=self._headers())

        assert created.status_code == 201
        assert order["amount"] == 25000
        assert order["key_id"] == test_settings.RAZORPAY_KEY_ID
        assert order["entry"]["status"] == "pending"
        assert pending.json()["wallet_balance"] == "0.00"
        assert forged.status_code == 401
        assert verified.status_code == 200
        assert verified.json()["entry"]["status"] == "completed"
        assert not verified.json()["duplicate"]
        assert again.json()["duplicate"]
        assert balance.json()["wallet_balance"] == "250.00"

    async def test_recharge_limits(self, api):
        """Test recharge amounts outside the limits answer 422."""
        client, _ = api

        response = await client.post(
            "/api/wallet/recharge/orders",
            json={"amount": "0.50"},
            headers=self._headers(),
        )

        assert response.status_code == 422

    async def test_operator_queue(self, api, test_settings):
        """Test operators list and settle queued withdrawals; others get 403."""
        client, container = api
        container._payout_gateway.status = PayoutStatus.PROCESSING
        await self._deposit(client, test_settings, "900.00", "pay_w6")
        bank_account_id = await self._verified_bank_account(client)
        withdrawal = await self._withdraw(client, bank_account_id, "250.00")
        entry_id = withdrawal.json()["entry"]["id"]
        admin = self._headers(AccountRole.ADMIN, account_id=uuid4())

        forbidden = await client.get(
            "/api/admin/withdrawals/pending", headers=self._headers()
        )
        queue = await client.get("/api/admin/withdrawals/pending", headers=admin)
        rejected = await client.post(
            f"/api/admin/withdrawals/{entry_id}/settle",
            json={"outcome": "failed", "failure_reason": "Name mismatch at bank"},
            headers=admin,
        )
        again = await client.post(
            f"/api/admin/withdrawals/{entry_id}/settle",
            json={"outcome": "completed"},
            headers=admin,
        )
        balance = await client.get("/api/wallet/balance", headers=self._headers())

        assert forbidden.status_code == 403
        assert [e["id"] for e in queue.json()] == [entry_id]
        assert rejected.status_code == 200
        assert rejected.json()["status"] == "failed"
        assert rejected.json()["failure_reason"] == "Name mismatch at bank"
        assert again.status_code == 409
        assert balance.json()["withdrawable_balance"] == "900.00"

    async def test_session_settlement(self, api, test_settings):
        """Test a settled session moves money from customer to designer."""
        client, _ = api
        designer_id = uuid4()
        await self._deposit(client, test_settings, "1500.00", "pay_s1")

        response = await client.post(
            "/api/internal/sessions/settle",
            json={
                "session_id": "sess-42",
                "customer_id": str(self.account_id),
                "designer_id": str(designer_id),
                "amount": "1200.00",
            },
            headers=self._internal(test_settings),
        )
        customer = await client.get("/api/wallet/balance", headers=self._headers())
        designer = await client.get(
            "/api/wallet/balance",
            headers=self._headers(AccountRole.DESIGNER, account_id=designer_id),
        )

        assert response.status_code == 201
        assert response.json()["payment"]["amount"] == "-1200.00"
        assert customer.json()["wallet_balance"] == "300.00"
        assert designer.json()["available_earnings"] == "1200.00"
        assert designer.json()["withdrawable_balance"] == "1200.00"


if __name__ == "__main__":
    TestWalletRoutes.run_as_main()
