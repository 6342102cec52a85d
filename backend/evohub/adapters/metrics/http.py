"""API traffic metrics: Prometheus adapter and an in-memory fake."""

from dataclasses import dataclass
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

from evohub.core.protocols.metrics import HttpMetrics

_LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
_SIZE_BUCKETS = (128, 512, 2_048, 8_192, 32_768, 131_072)


class PrometheusHttpMetrics(HttpMetrics):
    """Counts API requests by route template and status."""

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        registry = registry or CollectorRegistry()
        self._requests = Counter(
            "evohub_api_requests_total",
            "API requests by route and status",
            ["method", "route", "status"],
            registry=registry,
        )
        self._latency = Histogram(
            "evohub_api_request_seconds",
            "API request latency",
            ["method", "route"],
            buckets=_LATENCY_BUCKETS,
            registry=registry,
        )
        self._inflight = Gauge(
            "evohub_api_requests_inflight",
            "API requests currently being served",
            ["method"],
            registry=registry,
        )
        self._sizes = Histogram(
            "evohub_api_response_bytes",
            "API response body size",
            ["route"],
            buckets=_SIZE_BUCKETS,
            registry=registry,
        )

    def request_started(self, method: str) -> None:
        self._inflight.labels(method=method).inc()

    def request_finished(
        self,
        method: str,
        route: str,
        status_code: int,
        duration: float,
        size: Optional[int] = None,
    ) -> None:
        self._inflight.labels(method=method).dec()
        self._requests.labels(method=method, route=route, status=str(status_code)).inc()
        self._latency.labels(method=method, route=route).observe(duration)
        if size is not None:
            self._sizes.labels(route=route).observe(size)


@dataclass
class FinishedRequest:
    method: str
    route: str
    status_code: int
    duration: float
    size: Optional[int] = None


class FakeHttpMetrics(HttpMetrics):
    """Spy that keeps every finished request."""

    def __init__(self) -> None:
        self.inflight: dict[str, int] = {}
        self.finished: list[FinishedRequest] = []

    def request_started(self, method: str) -> None:
        self.inflight[method] = self.inflight.get(method, 0) + 1

    def request_finished(
        self,
        method: str,
        route: str,
        status_code: int,
        duration: float,
        size: Optional[int] = None,
    ) -> None:
        self.inflight[method] = self.inflight.get(method, 0) - 1
        self.finished.append(FinishedRequest(method, route, status_code, duration, size))

    @property
    def routes(self) -> list[str]:
        return [r.route for r in self.finished]
