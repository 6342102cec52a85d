"""Tests for container construction and protocol injection."""

import pytest

from evohub.adapters.kv import InMemoryKeyValueStore, RedisKeyValueStore
from evohub.api.deps import _resolve_field_name
from evohub.core import container as container_mod
from evohub.core.config import Environment, KeyValueBackend, Settings
from evohub.core.container import create_container, initialize_container, reset_container
from evohub.core.metrics_service import PrometheusMetricsService
from evohub.core.protocols import HealthServiceProtocol, KeyValueStore, MetricsService
from evohub.core.rate_limiter import RateLimiterRegistry
from evohub.domains.metering.protocols import MeteringServiceProtocol
from evohub.domains.metering.service import MeteringService


def _settings(**overrides) -> Settings:
    values = {
        "ENVIRONMENT": Environment.TEST,
        "RATE_LIMIT_CLEANUP_INTERVAL_SECONDS": 0,
        **overrides,
    }
    return Settings(_env_file=None, **values)


class TestCreateContainer:
    def test_memory_backend(self):
        c = create_container(_settings(KV_BACKEND=KeyValueBackend.MEMORY))

        assert isinstance(c.kv, InMemoryKeyValueStore)
        assert isinstance(c.metering, MeteringService)
        assert isinstance(c.metrics, PrometheusMetricsService)
        assert isinstance(c.health, HealthServiceProtocol)

    def test_redis_backend(self):
        c = create_container(_settings(KV_BACKEND=KeyValueBackend.REDIS))

        assert isinstance(c.kv, RedisKeyValueStore)

    def test_rate_limiters_follow_environment(self):
        dev = create_container(_settings(ENVIRONMENT=Environment.DEV))
        test = create_container(_settings())

        assert dev.rate_limiters.get("api").max_requests == 1000
        assert test.rate_limiters.get("api").max_requests == 30

    def test_rate_limiting_can_be_disabled(self):
        c = create_container(_settings(RATE_LIMIT_ENABLED=False))

        assert c.rate_limiters.enabled is False

    def test_each_container_gets_its_own_registry(self):
        first = create_container(_settings())
        second = create_container(_settings())

        assert first.metrics.http is not second.metrics.http

    def test_replace(self, test_container, fake_metering):
        replaced = test_container.replace(metering=fake_metering)

        assert replaced.metering is fake_metering
        assert replaced.kv is test_container.kv
        assert test_container.metering is not fake_metering


class TestGlobalContainer:
    @pytest.fixture(autouse=True)
    def _reset(self):
        reset_container()
        yield
        reset_container()

    def test_initialize_once(self):
        initialize_container(_settings())

        assert container_mod.container is not None
        with pytest.raises(RuntimeError, match="already initialized"):
            initialize_container(_settings())


class TestInjectResolution:
    @pytest.mark.parametrize(
        ("protocol", "field"),
        [
            (KeyValueStore, "kv"),
            (MeteringServiceProtocol, "metering"),
            (RateLimiterRegistry, "rate_limiters"),
            (HealthServiceProtocol, "health"),
            (MetricsService, "metrics"),
        ],
    )
    def test_field_for_protocol(self, protocol, field):
        assert _resolve_field_name(protocol) == field

    def test_unbound_type(self):
        with pytest.raises(TypeError, match="No binding for str"):
            _resolve_field_name(str)
