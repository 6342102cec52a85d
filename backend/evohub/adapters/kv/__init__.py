"""Key-value store adapters."""

from evohub.adapters.kv.in_memory import InMemoryKeyValueStore
from evohub.adapters.kv.redis import RedisKeyValueStore

__all__ = ["InMemoryKeyValueStore", "RedisKeyValueStore"]
