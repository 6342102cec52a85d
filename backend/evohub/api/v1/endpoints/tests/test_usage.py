"""API tests for the per-tool usage endpoints.

Runs against the real metering service over the fake KV store.
"""

import pytest

from evohub.api.tests.helpers import SAME_ORIGIN, user_headers


class TestGetUsage:
    @pytest.mark.asyncio
    async def test_guest_image_overview(self, client):
        response = await client.get("/api/usage/image")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["ownerType"] == "guest"
        assert data["usage"] == {"used": 0, "limit": 3, "resetAt": None}
        assert data["limits"] == {"user": 20, "guest": 3}
        assert data["entitlements"] == {
            "monthlyImages": 30,
            "dailyBurstCap": 3,
            "maxUpscale": 2,
            "faceEnhance": False,
        }
        assert "plan" not in data
        assert "debug" not in data

    @pytest.mark.asyncio
    async def test_no_cache_and_usage_headers(self, client):
        response = await client.get("/api/usage/prompt", headers=user_headers(plan="pro"))

        assert response.headers["Cache-Control"] == "no-store, no-cache, must-revalidate"
        assert response.headers["Pragma"] == "no-cache"
        assert response.headers["Expires"] == "0"
        assert response.headers["X-Usage-OwnerType"] == "user"
        assert response.headers["X-Usage-Plan"] == "pro"
        assert response.headers["X-Usage-Limit"] == "20"

    @pytest.mark.asyncio
    async def test_user_video_overview(self, client):
        response = await client.get("/api/usage/video", headers=user_headers(plan="pro"))

        data = response.json()["data"]
        assert data["plan"] == "pro"
        assert data["usage"]["used"] == 0
        assert data["usage"]["limit"] == 100
        assert data["usage"]["resetAt"] > 0
        assert data["entitlements"] == {"monthlyCreditsTenths": 1000, "tiers": ["720p", "1080p"]}

    @pytest.mark.asyncio
    async def test_guest_video_limit_is_zero(self, client):
        response = await client.get("/api/usage/video")

        assert response.json()["data"]["usage"] == {"used": 0, "limit": 0, "resetAt": None}

    @pytest.mark.asyncio
    async def test_debug_masks_owner_id(self, client):
        response = await client.get(
            "/api/usage/prompt", params={"debug": "1"}, headers=user_headers("user-12345678")
        )

        debug = response.json()["data"]["debug"]
        assert debug["ownerId"] == "…5678(13)"
        assert debug["limitResolved"] == 20

    @pytest.mark.asyncio
    async def test_unknown_tool(self, client):
        response = await client.get("/api/usage/teleport")

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "validation_error"


class TestConsumeUsage:
    @pytest.mark.asyncio
    async def test_counts_each_use(self, client):
        for expected in (1, 2):
            response = await client.post("/api/usage/voice/consume", headers=SAME_ORIGIN)
            assert response.json()["data"]["usage"]["used"] == expected

    @pytest.mark.asyncio
    async def test_repeated_job_id_counted_once(self, client):
        for _ in range(2):
            response = await client.post(
                "/api/usage/prompt/consume", json={"jobId": "job-1"}, headers=SAME_ORIGIN
            )

        usage = response.json()["data"]["usage"]
        assert usage["used"] == 1
        assert usage["resetAt"] > 0

    @pytest.mark.asyncio
    async def test_guest_prompt_limit(self, client, fake_metering_metrics):
        for _ in range(5):
            response = await client.post("/api/usage/prompt/consume", headers=SAME_ORIGIN)
            assert response.status_code == 200

        response = await client.post("/api/usage/prompt/consume", headers=SAME_ORIGIN)

        assert response.status_code == 403
        error = response.json()["error"]
        assert error["type"] == "forbidden"
        assert error["details"] == {"scope": "daily", "used": 5, "limit": 5}
        assert fake_metering_metrics.quota_denied[("prompt", "daily")] == 1

    @pytest.mark.asyncio
    async def test_image_cannot_be_consumed_directly(self, client):
        response = await client.post("/api/usage/image/consume", headers=SAME_ORIGIN)

        assert response.status_code == 400
        assert "cannot be consumed" in response.json()["error"]["message"]
