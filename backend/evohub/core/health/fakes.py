"""Health fakes for unit tests."""

import asyncio
from typing import Optional

from evohub.core.protocols.health import HealthProbe, HealthServiceProtocol
from evohub.schemas.health import ProbeResult, ProbeStatus, ReadinessReport


class FakeHealthService(HealthServiceProtocol):
    """Returns a canned readiness response and records each call."""

    def __init__(self) -> None:
        self._shutting_down = False
        self.response = ReadinessReport(
            status="ready", checks={"kv": ProbeResult(status=ProbeStatus.up)}
        )
        self.check_readiness_calls: list[bool] = []

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    @shutting_down.setter
    def shutting_down(self, value: bool) -> None:
        self._shutting_down = value

    async def check_readiness(self, *, debug: bool) -> ReadinessReport:
        self.check_readiness_calls.append(debug)
        return self.response

    def set_not_ready(self, error: str = "unavailable") -> None:
        self.response = ReadinessReport(
            status="not_ready",
            checks={"kv": ProbeResult(status=ProbeStatus.down, error=error)},
        )


class FakeProbe(HealthProbe):
    """Probe with scripted behaviour.

    By default it reports ``up``. Pass ``exc`` to make every check raise,
    ``delay`` to sleep first, or ``status`` to report something else.
    """

    def __init__(
        self,
        name: str,
        *,
        status: ProbeStatus = ProbeStatus.up,
        latency_ms: Optional[float] = 1.0,
        exc: Optional[Exception] = None,
        delay: float = 0.0,
    ) -> None:
        self._name = name
        self._status = status
        self._latency_ms = latency_ms
        self._exc = exc
        self._delay = delay
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    async def check(self) -> ProbeResult:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._exc is not None:
            raise self._exc
        return ProbeResult(status=self._status, latency_ms=self._latency_ms)
