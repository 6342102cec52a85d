"""Fake key-value store for testing.

Stores values in a dict without expiring them and records every write so
tests can assert on TTLs and write order.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Optional

from evohub.core.exceptions import KeyValueStoreError
from evohub.core.protocols.kv_store import KeyValueStore


@dataclass
class PutRecord:
    """Single observed write."""

    key: str
    value: str
    ttl_seconds: Optional[int]


class FakeKeyValueStore(KeyValueStore):
    """In-memory spy implementing the KeyValueStore protocol.

    ``yield_on_get`` hands control back to the event loop on every read, which
    lets concurrent callers interleave between a read and the following write.
    ``fail_puts_containing`` makes writes to matching keys raise
    ``KeyValueStoreError``.
    """

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.puts: list[PutRecord] = []
        self.deleted: list[str] = []
        self.healthy = True
        self.yield_on_get = False
        self.fail_puts_containing: Optional[str] = None

    async def get(self, key: str) -> Optional[str]:
        if self.yield_on_get:
            await asyncio.sleep(0)
        return self.data.get(key)

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        if self.fail_puts_containing and self.fail_puts_containing in key:
            raise KeyValueStoreError()
        self.data[key] = value
        self.puts.append(PutRecord(key, value, ttl_seconds))

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)
        self.deleted.append(key)

    async def ping(self) -> bool:
        return self.healthy

    # -- test helpers --

    def seed(self, key: str, value: Any) -> None:
        """Store *value* (JSON-encoded unless already a string) without recording."""
        self.data[key] = value if isinstance(value, str) else json.dumps(value)

    def load(self, key: str) -> Any:
        """Return the JSON-decoded value stored under *key*, or None."""
        raw = self.data.get(key)
        return json.loads(raw) if raw is not None else None

    def last_put(self, key: str) -> Optional[PutRecord]:
        """Return the most recent write to *key*."""
        for record in reversed(self.puts):
            if record.key == key:
                return record
        return None

    def clear(self) -> None:
        """Reset all recorded state."""
        self.data.clear()
        self.puts.clear()
        self.deleted.clear()
