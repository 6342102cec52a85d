"""Tests for the key-value health probe."""

import pytest

from evohub.adapters.health import KeyValueHealthProbe
from evohub.adapters.kv.fake import FakeKeyValueStore
from evohub.core.exceptions import KeyValueStoreError
from evohub.schemas.health import ProbeStatus


@pytest.mark.asyncio
async def test_healthy_store_is_up():
    probe = KeyValueHealthProbe(FakeKeyValueStore())

    result = await probe.check()

    assert probe.name == "kv"
    assert result.status == ProbeStatus.up
    assert result.latency_ms is not None


@pytest.mark.asyncio
async def test_failed_ping_raises():
    kv = FakeKeyValueStore()
    kv.healthy = False

    with pytest.raises(KeyValueStoreError):
        await KeyValueHealthProbe(kv).check()
