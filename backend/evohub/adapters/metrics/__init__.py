"""Metrics adapters: Prometheus and Fake implementations."""

from evohub.adapters.metrics.http import FakeHttpMetrics, FinishedRequest, PrometheusHttpMetrics
from evohub.adapters.metrics.metering import FakeMeteringMetrics, PrometheusMeteringMetrics
from evohub.adapters.metrics.renderer import FakeMetricsRenderer, PrometheusMetricsRenderer

__all__ = [
    "FakeHttpMetrics",
    "FakeMeteringMetrics",
    "FakeMetricsRenderer",
    "FinishedRequest",
    "PrometheusHttpMetrics",
    "PrometheusMeteringMetrics",
    "PrometheusMetricsRenderer",
]
