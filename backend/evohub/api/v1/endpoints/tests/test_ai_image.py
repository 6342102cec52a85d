"""API tests for image enhancer charges."""

import pytest

from evohub.api.tests.helpers import SAME_ORIGIN, user_headers

MODEL = "nightmareai/real-esrgan"


def _charge(job_id: str, **extra) -> dict:
    return {"jobId": job_id, "model": MODEL, **extra}


class TestChargeImage:
    @pytest.mark.asyncio
    async def test_guest_charge_from_plan(self, client, fake_metering_metrics):
        response = await client.post(
            "/api/ai-image/charges", json=_charge("job-1"), headers=SAME_ORIGIN
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["jobId"] == "job-1"
        assert data["cost"] == 1.0
        assert data["planPortionTenths"] == 10
        assert data["creditsPortionTenths"] == 0
        assert data["daily"]["used"] == 1
        assert data["daily"]["limit"] == 3
        assert data["monthlyUsedTenths"] == 10
        assert data["monthlyLimitTenths"] == 300
        assert data["creditsRemainingTenths"] is None
        assert data["idempotent"] is False
        assert fake_metering_metrics.charges[("image", "guest", "plan")] == 1

    @pytest.mark.asyncio
    async def test_retry_is_idempotent(self, client):
        await client.post("/api/ai-image/charges", json=_charge("job-1"), headers=SAME_ORIGIN)
        response = await client.post(
            "/api/ai-image/charges", json=_charge("job-1"), headers=SAME_ORIGIN
        )

        data = response.json()["data"]
        assert data["idempotent"] is True
        assert data["daily"]["used"] == 1

    @pytest.mark.asyncio
    async def test_options_beyond_plan_rejected(self, client):
        response = await client.post(
            "/api/ai-image/charges", json=_charge("job-1", scale=4), headers=SAME_ORIGIN
        )

        assert response.status_code == 400
        assert "scale" in response.json()["error"]["message"]

    @pytest.mark.asyncio
    async def test_unknown_model_rejected(self, client):
        body = {"jobId": "job-1", "model": "acme/unknown"}
        response = await client.post("/api/ai-image/charges", json=body, headers=SAME_ORIGIN)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Unsupported model 'acme/unknown'"

    @pytest.mark.asyncio
    async def test_surcharges_on_pro(self, client):
        body = _charge("job-1", scale=4, faceEnhance=True)
        response = await client.post(
            "/api/ai-image/charges", json=body, headers=user_headers(plan="pro")
        )

        assert response.status_code == 200
        assert response.json()["data"]["cost"] == 2.0

    @pytest.mark.asyncio
    async def test_monthly_overflow_spills_into_credits(self, client, test_container):
        await test_container.usage_counters.increment_monthly_by("ai", "user", "user-1", 200)
        await test_container.credit_ledger.add_credit_pack_tenths("user-1", "pack-1", 50)

        response = await client.post(
            "/api/ai-image/charges", json=_charge("job-9"), headers=user_headers()
        )

        data = response.json()["data"]
        assert data["planPortionTenths"] == 0
        assert data["creditsPortionTenths"] == 10
        assert data["creditsRemainingTenths"] == 40

    @pytest.mark.asyncio
    async def test_monthly_exhausted_without_credits(self, client, test_container):
        await test_container.usage_counters.increment_monthly_by("ai", "user", "user-1", 200)

        response = await client.post(
            "/api/ai-image/charges", json=_charge("job-9"), headers=user_headers()
        )

        assert response.status_code == 403
        assert response.json()["error"]["details"]["scope"] == "monthly"

    @pytest.mark.asyncio
    async def test_daily_burst_cap(self, client):
        for i in range(3):
            response = await client.post(
                "/api/ai-image/charges", json=_charge(f"job-{i}"), headers=SAME_ORIGIN
            )
            assert response.status_code == 200

        response = await client.post(
            "/api/ai-image/charges", json=_charge("job-3"), headers=SAME_ORIGIN
        )

        assert response.status_code == 403
        assert response.json()["error"]["details"] == {"scope": "daily", "used": 3, "limit": 3}
