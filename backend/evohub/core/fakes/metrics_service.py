"""Fake metrics service for testing."""

from evohub.core.protocols.metrics import HttpMetrics, MeteringMetrics, MetricsService


class FakeMetricsService(MetricsService):
    """In-memory MetricsService stand-in that records start/stop calls."""

    def __init__(self, http: HttpMetrics, metering: MeteringMetrics) -> None:
        self.http = http
        self.metering = metering
        self.started = False
        self.stopped = False

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True
