"""API tests for the admin endpoints."""

import pytest

from evohub.api.tests.helpers import admin_headers, user_headers
from evohub.core.config import Environment, settings

TOKEN = "csrf-token-123"


@pytest.fixture
def csrf_client(client):
    client.cookies.set("csrf_token", TOKEN)
    return client


class TestGrantCredits:
    @pytest.mark.asyncio
    async def test_grant_issues_pack(self, csrf_client, test_container):
        response = await csrf_client.post(
            "/api/admin/credits/grant",
            json={"userId": "user-1", "units": 12.5, "packId": "promo-1"},
            headers=admin_headers(csrf_token=TOKEN),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["userId"] == "user-1"
        assert data["pack"]["id"] == "promo-1"
        assert data["pack"]["unitsTenths"] == 125
        assert await test_container.credit_ledger.get_balance_tenths("user-1") == 125

    @pytest.mark.asyncio
    async def test_same_pack_id_not_granted_twice(self, csrf_client, test_container):
        body = {"userId": "user-1", "units": 10, "packId": "promo-1"}
        for _ in range(2):
            await csrf_client.post(
                "/api/admin/credits/grant", json=body, headers=admin_headers(csrf_token=TOKEN)
            )

        assert await test_container.credit_ledger.get_balance_tenths("user-1") == 100

    @pytest.mark.asyncio
    async def test_missing_csrf_token(self, client):
        response = await client.post(
            "/api/admin/credits/grant",
            json={"userId": "user-1", "units": 1},
            headers=admin_headers(),
        )

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Invalid CSRF token"

    @pytest.mark.asyncio
    async def test_non_admin_rejected(self, csrf_client):
        headers = {**user_headers(), "X-CSRF-Token": TOKEN}
        response = await csrf_client.post(
            "/api/admin/credits/grant", json={"userId": "user-1", "units": 1}, headers=headers
        )

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Insufficient permissions"

    @pytest.mark.asyncio
    async def test_units_must_be_positive(self, csrf_client):
        response = await csrf_client.post(
            "/api/admin/credits/grant",
            json={"userId": "user-1", "units": 0},
            headers=admin_headers(csrf_token=TOKEN),
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_disabled_in_production(self, csrf_client, monkeypatch):
        monkeypatch.setattr(settings, "ENVIRONMENT", Environment.PRD)
        monkeypatch.setattr(settings, "INTERNAL_CREDIT_GRANT", False)

        response = await csrf_client.post(
            "/api/admin/credits/grant",
            json={"userId": "user-1", "units": 1},
            headers=admin_headers(csrf_token=TOKEN),
        )

        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Credit adjust is disabled"

    @pytest.mark.asyncio
    async def test_enabled_in_production_with_flag(self, csrf_client, monkeypatch):
        monkeypatch.setattr(settings, "ENVIRONMENT", Environment.PRD)
        monkeypatch.setattr(settings, "INTERNAL_CREDIT_GRANT", True)

        response = await csrf_client.post(
            "/api/admin/credits/grant",
            json={"userId": "user-1", "units": 1},
            headers=admin_headers(csrf_token=TOKEN),
        )

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_sensitive_action_rate_limit(self, csrf_client):
        headers = admin_headers(csrf_token=TOKEN)
        for i in range(5):
            response = await csrf_client.post(
                "/api/admin/credits/grant", json={"userId": f"u-{i}", "units": 1}, headers=headers
            )
            assert response.status_code == 200

        response = await csrf_client.post(
            "/api/admin/credits/grant", json={"userId": "u-5", "units": 1}, headers=headers
        )

        assert response.status_code == 429


class TestDeductCredits:
    @pytest.mark.asyncio
    async def test_strict_deduct_refused_when_short(self, csrf_client, test_container):
        await test_container.credit_ledger.add_credit_pack_tenths("user-1", "pack-1", 50)

        response = await csrf_client.post(
            "/api/admin/credits/deduct",
            json={"userId": "user-1", "amount": 10},
            headers=admin_headers(csrf_token=TOKEN),
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["message"] == "insufficient_credits"
        assert error["details"] == {"requestedTenths": 100, "balanceTenths": 50}

    @pytest.mark.asyncio
    async def test_lenient_deduct_takes_what_is_left(self, csrf_client, test_container):
        await test_container.credit_ledger.add_credit_pack_tenths("user-1", "pack-1", 50)

        response = await csrf_client.post(
            "/api/admin/credits/deduct",
            json={"userId": "user-1", "amount": 10, "strict": False},
            headers=admin_headers(csrf_token=TOKEN),
        )

        data = response.json()["data"]
        assert data["requested"] == 10
        assert data["deductedTenths"] == 50
        assert data["balance"] == 0
        assert data["breakdown"] == [{"packId": "pack-1", "usedTenths": 50}]

    @pytest.mark.asyncio
    async def test_idempotency_key_replays(self, csrf_client, test_container):
        await test_container.credit_ledger.add_credit_pack_tenths("user-1", "pack-1", 1000)
        body = {"userId": "user-1", "amount": 3.9, "idempotencyKey": "  refund-42  "}
        headers = admin_headers(csrf_token=TOKEN)

        first = (await csrf_client.post("/api/admin/credits/deduct", json=body, headers=headers))
        second = (await csrf_client.post("/api/admin/credits/deduct", json=body, headers=headers))

        assert first.json()["data"]["jobId"] == "admin-deduct-refund-42"
        assert first.json()["data"]["deducted"] == 3
        assert first.json()["data"]["idempotent"] is False
        assert second.json()["data"]["idempotent"] is True
        assert await test_container.credit_ledger.get_balance_tenths("user-1") == 970


class TestRateLimitAdmin:
    @pytest.mark.asyncio
    async def test_lists_limiter_state(self, client):
        await client.get("/api/usage/prompt")

        response = await client.get(
            "/api/admin/rate-limits", params={"name": "api"}, headers=admin_headers()
        )

        assert response.status_code == 200
        [state] = response.json()["data"]
        assert state["name"] == "api"
        assert state["maxRequests"] == 30
        assert state["windowSeconds"] == 60
        [entry] = state["entries"]
        assert entry["key"] == "127.0.0.1:anonymous"
        assert entry["count"] == 1
        assert entry["resetAt"] > 0

    @pytest.mark.asyncio
    async def test_lists_all_limiters(self, client):
        response = await client.get("/api/admin/rate-limits", headers=admin_headers())

        names = {state["name"] for state in response.json()["data"]}
        assert {"api", "aiJobs", "sensitiveAction", "stripeWebhook"} <= names

    @pytest.mark.asyncio
    async def test_unknown_limiter(self, client):
        response = await client.get(
            "/api/admin/rate-limits", params={"name": "nope"}, headers=admin_headers()
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_reset_key(self, client, api_container):
        await client.get("/api/usage/prompt")

        response = await client.delete(
            "/api/admin/rate-limits/api/127.0.0.1:anonymous", headers=admin_headers()
        )
        again = await client.delete(
            "/api/admin/rate-limits/api/127.0.0.1:anonymous", headers=admin_headers()
        )

        assert response.json()["data"] == {
            "name": "api",
            "key": "127.0.0.1:anonymous",
            "reset": True,
            "detail": None,
        }
        assert again.json()["data"]["reset"] is False
        assert again.json()["data"]["detail"] == "Key had no active window"
        [state] = api_container.rate_limiters.get_state("api")
        assert state.entries == []

    @pytest.mark.asyncio
    async def test_reset_unknown_limiter(self, client):
        response = await client.delete("/api/admin/rate-limits/nope/key", headers=admin_headers())

        assert response.status_code == 404
