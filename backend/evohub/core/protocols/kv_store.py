"""Key-value store protocol.

Usage counters and the credit ledger persist JSON text under string keys.
Implementations decide how TTLs are enforced; callers only pass the number
of seconds a value should live.
"""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal async key-value store with optional per-key expiry."""

    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if absent or expired."""
        ...

    async def put(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        """Store *value* under *key*, expiring after *ttl_seconds* when given."""
        ...

    async def delete(self, key: str) -> None:
        """Remove *key* if present."""
        ...

    async def ping(self) -> bool:
        """Return True when the backend is reachable."""
        ...
