"""API tests for the health probes."""

import pytest


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_liveness(client):
    response = await client.get("/api/health/live")

    assert response.json() == {"status": "alive"}


@pytest.mark.asyncio
async def test_ready(client, fake_health):
    response = await client.get("/api/health/ready")

    assert response.status_code == 200
    assert response.json()["status"] == "ready"
    assert fake_health.check_readiness_calls == [False]


@pytest.mark.asyncio
async def test_not_ready_is_503(client, fake_health):
    fake_health.set_not_ready("connection_refused")

    response = await client.get("/api/health/ready")

    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "not_ready"
    assert body["checks"]["kv"]["status"] == "down"
    assert body["checks"]["kv"]["error"] == "connection_refused"
