"""Shared fixtures for credit ledger tests."""

import pytest

from evohub.adapters.kv.fake import FakeKeyValueStore
from evohub.domains.credits.ledger import CreditLedger
from evohub.domains.credits.video_quota import VideoQuotaLedger
from evohub.domains.usage.tests.conftest import FrozenClock

USER_ID = "user-1"
NOW_MS = 1710496800000

DAY_MS = 24 * 60 * 60 * 1000


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def kv():
    return FakeKeyValueStore()


@pytest.fixture
def ledger(kv, clock):
    return CreditLedger(kv, clock=clock)


@pytest.fixture
def video_quota(kv, clock):
    return VideoQuotaLedger(kv, clock=clock)
