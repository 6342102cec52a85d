"""Unit tests for the readiness orchestrator."""

import asyncio
import errno

import pytest

from evohub.core.exceptions import KeyValueStoreError
from evohub.core.health.fakes import FakeProbe
from evohub.core.health.service import HealthService, describe_failure
from evohub.schemas.health import ProbeStatus


class TestCheckReadiness:
    @pytest.mark.asyncio
    async def test_all_up(self):
        svc = HealthService(critical=[FakeProbe("kv")], informational=[FakeProbe("cache")])

        result = await svc.check_readiness(debug=False)

        assert result.status == "ready"
        assert result.checks["kv"].status == ProbeStatus.up
        assert result.checks["cache"].latency_ms == 1.0

    @pytest.mark.asyncio
    async def test_critical_failure_is_not_ready(self):
        svc = HealthService(
            critical=[FakeProbe("kv", exc=ConnectionRefusedError(errno.ECONNREFUSED, "refused"))],
            informational=[FakeProbe("cache")],
        )

        result = await svc.check_readiness(debug=False)

        assert result.status == "not_ready"
        assert result.checks["kv"].status == ProbeStatus.down
        assert result.checks["kv"].error == "connection_refused"
        assert result.checks["cache"].status == ProbeStatus.up

    @pytest.mark.asyncio
    async def test_informational_failure_stays_ready(self):
        svc = HealthService(
            critical=[FakeProbe("kv")],
            informational=[FakeProbe("cache", exc=KeyValueStoreError("gone"))],
        )

        result = await svc.check_readiness(debug=False)

        assert result.status == "ready"
        assert result.checks["cache"].error == "unavailable"

    @pytest.mark.asyncio
    async def test_slow_probe_times_out(self):
        svc = HealthService(critical=[FakeProbe("kv", delay=1.0)], timeout=0.01)

        result = await svc.check_readiness(debug=False)

        assert result.status == "not_ready"
        assert result.checks["kv"].error == "timeout"

    @pytest.mark.asyncio
    async def test_shutting_down_skips_probes(self):
        probe = FakeProbe("kv")
        svc = HealthService(critical=[probe])
        svc.shutting_down = True

        result = await svc.check_readiness(debug=False)

        assert result.status == "not_ready"
        assert result.checks["kv"].status == ProbeStatus.skipped
        assert probe.calls == 0

    @pytest.mark.asyncio
    async def test_skipped_probe_does_not_gate(self):
        svc = HealthService(critical=[FakeProbe("kv", status=ProbeStatus.skipped)])

        result = await svc.check_readiness(debug=False)

        assert result.status == "ready"

    @pytest.mark.asyncio
    async def test_debug_exposes_message(self):
        svc = HealthService(critical=[FakeProbe("kv", exc=KeyValueStoreError("boom"))])

        result = await svc.check_readiness(debug=True)

        assert "boom" in result.checks["kv"].error


class TestDescribeFailure:
    def test_timeout(self):
        assert describe_failure(asyncio.TimeoutError(), debug=False) == "timeout"

    def test_refused_on_cause(self):
        outer = KeyValueStoreError("wrapped")
        outer.__cause__ = ConnectionRefusedError(errno.ECONNREFUSED, "refused")
        assert describe_failure(outer, debug=False) == "connection_refused"

    def test_unknown(self):
        assert describe_failure(ValueError("x"), debug=False) == "unavailable"
