"""Readiness checks over the service's backing stores.

Probes run concurrently under a shared timeout. A failing critical probe
makes the service ``not_ready``; informational probes are only reported.
"""

import asyncio
import errno
from collections.abc import Sequence
from typing import Union

from evohub.core.logging import logger
from evohub.core.protocols.health import HealthProbe, HealthServiceProtocol
from evohub.schemas.health import ProbeResult, ProbeStatus, ReadinessReport

_ProbeOutcome = Union[ProbeResult, Exception]


class HealthService(HealthServiceProtocol):
    """Default ``HealthServiceProtocol`` built by the container factory."""

    def __init__(
        self,
        *,
        critical: Sequence[HealthProbe],
        informational: Sequence[HealthProbe] = (),
        timeout: float = 5.0,
    ) -> None:
        self._critical = list(critical)
        self._informational = list(informational)
        self._timeout = timeout
        self._shutting_down = False

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    @shutting_down.setter
    def shutting_down(self, value: bool) -> None:
        self._shutting_down = value

    async def check_readiness(self, *, debug: bool) -> ReadinessReport:
        """Probe every dependency and fold the results into one response."""
        probes = self._critical + self._informational
        if self.shutting_down:
            return ReadinessReport(
                status="not_ready",
                checks={p.name: ProbeResult(status=ProbeStatus.skipped) for p in probes},
            )

        outcomes = await asyncio.gather(*(self._probe(p) for p in probes))
        critical = {p.name for p in self._critical}

        checks: dict[str, ProbeResult] = {}
        ready = True
        for probe, outcome in zip(probes, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"Health probe '{probe.name}' failed: {outcome!r}")
                outcome = ProbeResult(
                    status=ProbeStatus.down, error=describe_failure(outcome, debug=debug)
                )
                ready = ready and probe.name not in critical
            checks[probe.name] = outcome

        return ReadinessReport(status="ready" if ready else "not_ready", checks=checks)

    async def _probe(self, probe: HealthProbe) -> _ProbeOutcome:
        try:
            return await asyncio.wait_for(probe.check(), timeout=self._timeout)
        except Exception as exc:
            return exc


def describe_failure(exc: Exception, *, debug: bool) -> str:
    """Error text for a failed probe. Outside debug only a coarse category is exposed."""
    if debug:
        return str(exc) or type(exc).__name__
    if isinstance(exc, asyncio.TimeoutError):
        return "timeout"
    code = getattr(exc, "errno", None)
    if code is None and exc.__cause__ is not None:
        code = getattr(exc.__cause__, "errno", None)
    if code == errno.ECONNREFUSED:
        return "connection_refused"
    return "unavailable"
