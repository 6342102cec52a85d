"""Tests for the key-value store adapters."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from evohub.adapters.kv import InMemoryKeyValueStore, RedisKeyValueStore
from evohub.core.exceptions import KeyValueStoreError


class ManualClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestInMemoryKeyValueStore:
    @pytest.fixture
    def clock(self):
        return ManualClock()

    @pytest.fixture
    def store(self, clock):
        return InMemoryKeyValueStore(clock=clock)

    @pytest.mark.asyncio
    async def test_put_get_delete(self, store):
        await store.put("a", "1")
        assert await store.get("a") == "1"

        await store.delete("a")
        assert await store.get("a") is None

    @pytest.mark.asyncio
    async def test_entry_expires_after_ttl(self, store, clock):
        await store.put("a", "1", ttl_seconds=10)

        clock.now += 9.5
        assert await store.get("a") == "1"
        clock.now += 0.5
        assert await store.get("a") is None

    @pytest.mark.asyncio
    async def test_ttl_floor_is_one_second(self, store, clock):
        await store.put("a", "1", ttl_seconds=0)

        assert await store.get("a") == "1"
        clock.now += 1
        assert await store.get("a") is None

    @pytest.mark.asyncio
    async def test_prune_drops_only_expired(self, store, clock):
        await store.put("short", "1", ttl_seconds=5)
        await store.put("long", "1", ttl_seconds=50)
        await store.put("forever", "1")

        clock.now += 10
        removed = await store.prune()

        assert removed == 1
        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_ping(self, store):
        assert await store.ping() is True

    @pytest.mark.asyncio
    async def test_background_cleanup_prunes_expired_entries(self, clock):
        store = InMemoryKeyValueStore(clock=clock, cleanup_interval_seconds=0.01)
        await store.put("short", "1", ttl_seconds=5)
        await store.put("forever", "1")

        clock.now += 10
        for _ in range(50):
            if len(store) == 1:
                break
            await asyncio.sleep(0.01)

        assert len(store) == 1
        await store.close()

    @pytest.mark.asyncio
    async def test_cleanup_disabled_with_zero_interval(self, store):
        await store.put("a", "1", ttl_seconds=5)

        assert store._cleanup_task is None
        await store.close()


class TestRedisKeyValueStore:
    @pytest.fixture
    def client(self):
        return AsyncMock()

    @pytest.mark.asyncio
    async def test_put_uses_namespace_and_ttl(self, client):
        store = RedisKeyValueStore(client, namespace="evohub:")

        await store.put("ai:usage", "3", ttl_seconds=60)

        client.set.assert_awaited_once_with("evohub:ai:usage", "3", ex=60)

    @pytest.mark.asyncio
    async def test_put_without_ttl(self, client):
        store = RedisKeyValueStore(client)

        await store.put("k", "v")

        client.set.assert_awaited_once_with("k", "v", ex=None)

    @pytest.mark.asyncio
    async def test_get_decodes_bytes(self, client):
        client.get.return_value = b"42"
        store = RedisKeyValueStore(client)

        assert await store.get("k") == "42"

    @pytest.mark.asyncio
    async def test_transient_error_retried(self, client):
        client.get.side_effect = [RedisConnectionError("reset"), "ok"]
        store = RedisKeyValueStore(client)

        assert await store.get("k") == "ok"
        assert client.get.await_count == 2

    @pytest.mark.asyncio
    async def test_persistent_error_surfaces_as_store_error(self, client):
        client.delete.side_effect = RedisConnectionError("down")
        store = RedisKeyValueStore(client)

        with pytest.raises(KeyValueStoreError):
            await store.delete("k")
        assert client.delete.await_count == 3

    @pytest.mark.asyncio
    async def test_close_releases_pool(self, client):
        await RedisKeyValueStore(client).close()

        client.aclose.assert_awaited_once()
