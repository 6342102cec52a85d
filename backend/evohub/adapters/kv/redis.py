"""Redis-backed key-value store adapter.

Values are stored as plain strings with ``SET key value EX ttl``. Transient
connection failures are retried with exponential backoff before surfacing
as ``KeyValueStoreError``.
"""

from __future__ import annotations

from typing import Optional

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from evohub.core.exceptions import KeyValueStoreError
from evohub.core.logging import logger
from evohub.core.protocols.kv_store import KeyValueStore

_TRANSIENT_ERRORS = (RedisConnectionError, RedisTimeoutError)

_redis_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, max=1.0),
    retry=retry_if_exception_type(_TRANSIENT_ERRORS),
    reraise=True,
)


class RedisKeyValueStore(KeyValueStore):
    """KeyValueStore over a shared ``redis.asyncio.Redis`` client."""

    def __init__(self, client: redis.Redis, namespace: str = "") -> None:
        self._client = client
        self._namespace = namespace

    @classmethod
    def from_url(cls, url: str, namespace: str = "") -> "RedisKeyValueStore":
        """Build a store with its own connection pool."""
        client = redis.Redis.from_url(url, decode_responses=True)
        return cls(client, namespace=namespace)

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}" if self._namespace else key

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._get(self._key(key))
        except (_TRANSIENT_ERRORS + (RetryError,)) as e:
            logger.error(f"[RedisKV] get failed for '{key}': {e}")
            raise KeyValueStoreError() from e
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        ex = max(1, int(ttl_seconds)) if ttl_seconds is not None else None
        try:
            await self._set(self._key(key), value, ex)
        except (_TRANSIENT_ERRORS + (RetryError,)) as e:
            logger.error(f"[RedisKV] put failed for '{key}': {e}")
            raise KeyValueStoreError() from e

    async def delete(self, key: str) -> None:
        try:
            await self._delete(self._key(key))
        except (_TRANSIENT_ERRORS + (RetryError,)) as e:
            logger.error(f"[RedisKV] delete failed for '{key}': {e}")
            raise KeyValueStoreError() from e

    async def ping(self) -> bool:
        return bool(await self._client.ping())

    async def close(self) -> None:
        """Release the underlying connection pool."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @_redis_retry
    async def _get(self, key: str):
        return await self._client.get(key)

    @_redis_retry
    async def _set(self, key: str, value: str, ex: Optional[int]) -> None:
        await self._client.set(key, value, ex=ex)

    @_redis_retry
    async def _delete(self, key: str) -> None:
        await self._client.delete(key)
