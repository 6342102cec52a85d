"""Prometheus metrics facade and its FastAPI lifespan hook."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from evohub.api.metrics import MetricsServer
from evohub.core.logging import logger
from evohub.core.protocols.metrics import (
    HttpMetrics,
    MeteringMetrics,
    MetricsRenderer,
    MetricsService,
)


class PrometheusMetricsService(MetricsService):
    """Bundles the HTTP and metering adapters with the ``/metrics`` sidecar.

    Only ``http`` and ``metering`` are resolvable through ``Inject()``; the
    sidecar server is internal.
    """

    def __init__(
        self,
        http: HttpMetrics,
        metering: MeteringMetrics,
        renderer: MetricsRenderer,
        host: str,
        port: int,
    ) -> None:
        self.http = http
        self.metering = metering
        self._server = MetricsServer(renderer, port=port, host=host)

    async def start(self) -> None:
        await self._server.start()

    async def stop(self) -> None:
        await self._server.stop()


@asynccontextmanager
async def metrics_lifespan(
    app: FastAPI, metrics: MetricsService, enabled: bool = True
) -> AsyncIterator[None]:
    """Expose ``metrics.http`` to the middleware and run the sidecar while *enabled*.

    Disabled metrics still count in-process; there is just nothing to scrape.
    """
    app.state.http_metrics = metrics.http
    if not enabled:
        logger.info("Metrics sidecar disabled")
        yield
        return
    await metrics.start()
    try:
        yield
    finally:
        await metrics.stop()
