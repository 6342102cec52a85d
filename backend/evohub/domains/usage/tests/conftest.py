"""Shared fixtures for usage counter tests."""

import pytest

from evohub.adapters.kv.fake import FakeKeyValueStore
from evohub.domains.usage.counters import UsageCounterStore

# 2024-03-15T10:00:00Z
NOW = 1710496800.0


class FrozenClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def kv():
    return FakeKeyValueStore()


@pytest.fixture
def counters(kv, clock):
    return UsageCounterStore(kv, clock=clock)
