"""Tests for the metrics lifespan wiring."""

from types import SimpleNamespace

import pytest

from evohub.core.metrics_service import metrics_lifespan


@pytest.mark.asyncio
async def test_enabled_starts_and_stops(fake_metrics_service, fake_http_metrics):
    app = SimpleNamespace(state=SimpleNamespace())

    async with metrics_lifespan(app, fake_metrics_service, enabled=True):
        assert app.state.http_metrics is fake_http_metrics
        assert fake_metrics_service.started is True
        assert fake_metrics_service.stopped is False

    assert fake_metrics_service.stopped is True


@pytest.mark.asyncio
async def test_disabled_only_wires_http_metrics(fake_metrics_service, fake_http_metrics):
    app = SimpleNamespace(state=SimpleNamespace())

    async with metrics_lifespan(app, fake_metrics_service, enabled=False):
        assert app.state.http_metrics is fake_http_metrics

    assert fake_metrics_service.started is False
    assert fake_metrics_service.stopped is False
