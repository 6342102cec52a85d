"""API tests for video charges."""

import pytest

from evohub.api.tests.helpers import SAME_ORIGIN, user_headers


class TestChargeVideo:
    @pytest.mark.asyncio
    async def test_guest_rejected(self, client):
        response = await client.post(
            "/api/ai-video/charges", json={"jobId": "v-1", "tier": "720p"}, headers=SAME_ORIGIN
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_credits_path(self, client, test_container, fake_metering_metrics):
        await test_container.credit_ledger.add_credit_pack_tenths("user-1", "pack-1", 1000)

        response = await client.post(
            "/api/ai-video/charges", json={"jobId": "v-1", "tier": "720p"}, headers=user_headers()
        )

        assert response.status_code == 200
        assert response.json()["data"] == {
            "jobId": "v-1",
            "tier": "720p",
            "credits": 5,
            "balance": 95,
            "idempotent": False,
        }
        assert fake_metering_metrics.credits_consumed["video"] == 50

    @pytest.mark.asyncio
    async def test_quota_path(self, client, test_container):
        response = await client.post(
            "/api/ai-video/charges",
            json={"jobId": "v-1", "tier": "1080p"},
            headers=user_headers(plan="pro"),
        )

        data = response.json()["data"]
        assert data["quota"] is True
        assert data["credits"] == 0
        assert await test_container.video_quota.get_used_tenths("user-1") == 80

    @pytest.mark.asyncio
    async def test_no_credits_no_quota(self, client):
        response = await client.post(
            "/api/ai-video/charges", json={"jobId": "v-1", "tier": "720p"}, headers=user_headers()
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["message"] == "insufficient_quota"
        assert error["details"] == {"neededTenths": 50, "remainingTenths": 0}

    @pytest.mark.asyncio
    async def test_unknown_tier(self, client):
        response = await client.post(
            "/api/ai-video/charges", json={"jobId": "v-1", "tier": "8k"}, headers=user_headers()
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Unsupported video tier '8k'"

    @pytest.mark.asyncio
    async def test_retry_is_idempotent(self, client, test_container):
        body = {"jobId": "v-1", "tier": "720p"}
        headers = user_headers(plan="pro")
        await client.post("/api/ai-video/charges", json=body, headers=headers)

        response = await client.post("/api/ai-video/charges", json=body, headers=headers)

        assert response.json()["data"]["idempotent"] is True
        assert await test_container.video_quota.get_used_tenths("user-1") == 50
