"""Metrics protocols.

``MetricsService`` is the facade the container exposes. Its ``http`` and
``metering`` members are what middleware and the metering service record to;
the renderer is only seen by the ``/metrics`` sidecar.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class HttpMetrics(Protocol):
    """API traffic instrumentation, fed by the HTTP metrics middleware."""

    def request_started(self, method: str) -> None:
        """Mark one request of *method* as in flight."""
        ...

    def request_finished(
        self,
        method: str,
        route: str,
        status_code: int,
        duration: float,
        size: Optional[int] = None,
    ) -> None:
        """Close an in-flight request.

        Args:
            method: HTTP method.
            route: Matched route template, e.g. ``/api/usage/{tool}``.
            status_code: Response status, or 500 when the handler raised.
            duration: Wall time in seconds.
            size: Response body size in bytes, when the response declares it.
        """
        ...


@runtime_checkable
class MeteringMetrics(Protocol):
    """Usage metering counters."""

    def record_charge(self, tool: str, owner_type: str, source: str) -> None:
        """Count a successful charge. *source* is ``plan``, ``credits`` or ``quota``."""
        ...

    def record_credits_consumed(self, tool: str, tenths: int) -> None:
        ...

    def record_quota_denied(self, tool: str, scope: str) -> None:
        """Count a request denied by a daily or monthly quota."""
        ...


@runtime_checkable
class MetricsRenderer(Protocol):
    """Serializes collected metrics for a scraper."""

    media_type: str
    charset: str

    def render(self) -> bytes:
        ...


@runtime_checkable
class MetricsService(Protocol):
    """Owns the metrics adapters and the sidecar lifecycle."""

    http: HttpMetrics
    metering: MeteringMetrics

    async def start(self) -> None:
        ...

    async def stop(self) -> None:
        ...
