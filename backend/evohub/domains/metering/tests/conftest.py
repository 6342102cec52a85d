"""Shared fixtures for metering service tests."""

import pytest

from evohub.adapters.kv.fake import FakeKeyValueStore
from evohub.adapters.metrics import FakeMeteringMetrics
from evohub.core.shared_models import Owner, OwnerType
from evohub.domains.credits.ledger import CreditLedger
from evohub.domains.credits.video_quota import VideoQuotaLedger
from evohub.domains.metering.service import MeteringService
from evohub.domains.usage.counters import UsageCounterStore
from evohub.domains.usage.tests.conftest import FrozenClock

USER = Owner(OwnerType.USER, "user-1")
GUEST = Owner(OwnerType.GUEST, "guest-1")


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def kv():
    return FakeKeyValueStore()


@pytest.fixture
def metrics():
    return FakeMeteringMetrics()


@pytest.fixture
def counters(kv, clock):
    return UsageCounterStore(kv, clock=clock)


@pytest.fixture
def ledger(kv, clock):
    return CreditLedger(kv, clock=clock)


@pytest.fixture
def video_quota(kv, clock):
    return VideoQuotaLedger(kv, clock=clock)


@pytest.fixture
def service(kv, counters, ledger, video_quota, metrics, clock):
    return MeteringService(
        kv,
        counters,
        ledger,
        video_quota,
        metrics,
        prompt_user_limit=3,
        prompt_guest_limit=2,
        clock=clock,
    )
