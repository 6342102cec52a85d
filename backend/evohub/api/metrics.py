"""Prometheus scrape endpoint on its own port, off the public API."""

from typing import Optional

from aiohttp import web

from evohub.core.logging import logger
from evohub.core.protocols.metrics import MetricsRenderer


def build_metrics_app(renderer: MetricsRenderer) -> web.Application:
    """aiohttp app with a single ``GET /metrics`` route."""

    async def scrape(_: web.Request) -> web.Response:
        return web.Response(
            body=renderer.render(),
            content_type=renderer.media_type,
            charset=renderer.charset,
        )

    app = web.Application()
    app.router.add_get("/metrics", scrape)
    return app


class MetricsServer:
    """Runs :func:`build_metrics_app` on ``host:port``."""

    def __init__(self, renderer: MetricsRenderer, port: int, host: str = "0.0.0.0") -> None:
        self.renderer = renderer
        self.host = host
        self.port = port
        self._runner: Optional[web.AppRunner] = None

    @property
    def bound_port(self) -> Optional[int]:
        """Actual listening port, useful when started with ``port=0``."""
        if self._runner is None:
            return None
        for address in self._runner.addresses:
            return address[1]
        return None

    async def start(self) -> None:
        runner = web.AppRunner(build_metrics_app(self.renderer), access_log=None)
        await runner.setup()
        await web.TCPSite(runner, self.host, self.port).start()
        self._runner = runner
        logger.info(f"Metrics server listening on {self.host}:{self.bound_port}")

    async def stop(self) -> None:
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None
        logger.info("Metrics server stopped")
