"""In-memory key-value store.

Suitable for single-process deployments and local development. Entries
with a TTL are expired lazily on read and in bulk by ``prune()``, which a
background task runs every ``cleanup_interval_seconds`` once the store has
been written to.

Safe for concurrent coroutines within a single event loop via asyncio.Lock.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Optional

from evohub.core.logging import logger
from evohub.core.protocols.kv_store import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed implementation of the KeyValueStore protocol.

    Each entry is stored as ``(value, expires_at)`` where ``expires_at`` is a
    monotonic timestamp or None for entries without a TTL.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        cleanup_interval_seconds: float = 0,
    ) -> None:
        """Initialize the store.

        Args:
            clock: Monotonic time source, injectable for tests.
            cleanup_interval_seconds: Seconds between background prunes.
                Zero or less disables the task.
        """
        self._clock = clock
        self._data: dict[str, tuple[str, Optional[float]]] = {}
        self._lock = asyncio.Lock()
        self._cleanup_interval = cleanup_interval_seconds
        self._cleanup_task: Optional[asyncio.Task] = None

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._data[key]
                return None
            return value

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        self._ensure_cleanup_task()
        expires_at = None
        if ttl_seconds is not None:
            expires_at = self._clock() + max(1, int(ttl_seconds))
        async with self._lock:
            self._data[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)

    async def ping(self) -> bool:
        return True

    async def prune(self) -> int:
        """Drop all expired entries and return how many were removed."""
        now = self._clock()
        async with self._lock:
            expired = [k for k, (_, exp) in self._data.items() if exp is not None and now >= exp]
            for key in expired:
                del self._data[key]
        return len(expired)

    def _ensure_cleanup_task(self) -> None:
        if self._cleanup_interval <= 0:
            return
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.create_task(self._periodic_cleanup_loop())
        logger.info(f"InMemoryKeyValueStore cleanup started (interval={self._cleanup_interval}s)")

    async def _periodic_cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self._cleanup_interval)
            removed = await self.prune()
            if removed:
                logger.debug(f"[KV] Pruned {removed} expired entries")

    async def close(self) -> None:
        """Stop the cleanup task."""
        if self._cleanup_task is None:
            return
        self._cleanup_task.cancel()
        try:
            await self._cleanup_task
        except asyncio.CancelledError:
            pass
        self._cleanup_task = None

    def __len__(self) -> int:
        return len(self._data)
