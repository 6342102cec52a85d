"""Exposition renderers for the ``/metrics`` sidecar."""

import re

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest

from evohub.core.protocols.metrics import MetricsRenderer

# aiohttp takes the charset separately from the media type.
_CHARSET_PARAM = re.compile(r";\s*charset=([^;]+)", re.IGNORECASE)


class PrometheusMetricsRenderer(MetricsRenderer):
    """Text exposition of one CollectorRegistry."""

    def __init__(self, registry: CollectorRegistry) -> None:
        self._registry = registry
        match = _CHARSET_PARAM.search(CONTENT_TYPE_LATEST)
        self.charset = match.group(1).strip() if match else "utf-8"
        self.media_type = _CHARSET_PARAM.sub("", CONTENT_TYPE_LATEST).strip()

    def render(self) -> bytes:
        return generate_latest(self._registry)


class FakeMetricsRenderer(MetricsRenderer):
    media_type = "text/plain"
    charset = "utf-8"

    def __init__(self, body: bytes = b"# evohub\n") -> None:
        self.body = body
        self.renders = 0

    def render(self) -> bytes:
        self.renders += 1
        return self.body
