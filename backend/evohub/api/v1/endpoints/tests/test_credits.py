"""API tests for the credit balance endpoint."""

import pytest

from evohub.api.tests.helpers import user_headers


@pytest.mark.asyncio
async def test_balance_lists_active_packs(client, test_container):
    await test_container.credit_ledger.add_credit_pack_tenths("user-1", "pack-a", 125)
    await test_container.credit_ledger.add_credit_pack_tenths("user-1", "pack-b", 40)

    response = await client.get("/api/credits/balance", headers=user_headers())

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["balanceTenths"] == 165
    assert data["credits"] == 16
    assert [p["id"] for p in data["packs"]] == ["pack-a", "pack-b"]
    assert data["packs"][0]["unitsTenths"] == 125
    assert data["packs"][0]["expiresAt"] > data["packs"][0]["createdAt"]


@pytest.mark.asyncio
async def test_empty_balance(client):
    response = await client.get("/api/credits/balance", headers=user_headers("user-2"))

    assert response.json()["data"] == {"balanceTenths": 0, "credits": 0, "packs": []}


@pytest.mark.asyncio
async def test_guest_has_no_balance(client):
    response = await client.get("/api/credits/balance")

    assert response.status_code == 401
