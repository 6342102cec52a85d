"""Per-key asyncio locks that disappear once nobody holds or awaits them."""

import asyncio
import weakref


class KeyedLocks:
    """``asyncio.Lock`` per key, held in a ``WeakValueDictionary``.

    A lock stays alive while a coroutine is inside ``async with`` or waiting
    on it, so keys that are never touched again (yesterday's counters, one-off
    job ids) do not accumulate.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def __call__(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)
