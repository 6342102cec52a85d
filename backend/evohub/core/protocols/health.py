"""Health protocols for dependency injection.

Defines ``HealthProbe`` (individual infrastructure check) and
``HealthServiceProtocol`` (readiness-check facade).
"""

from typing import Protocol, runtime_checkable

from evohub.schemas.health import ProbeResult, ReadinessReport


@runtime_checkable
class HealthProbe(Protocol):
    """Protocol for a single infrastructure health check.

    Implementations return a ``ProbeResult`` on success and raise on
    failure. The service handles timeouts and error sanitization.
    """

    @property
    def name(self) -> str:
        """Identifier surfaced in the readiness response."""
        ...

    async def check(self) -> ProbeResult:
        """Probe the dependency and return its status."""
        ...


@runtime_checkable
class HealthServiceProtocol(Protocol):
    """Facade that orchestrates health probes and owns shutdown state."""

    @property
    def shutting_down(self) -> bool:
        """Whether the application is shutting down."""
        ...

    @shutting_down.setter
    def shutting_down(self, value: bool) -> None: ...

    async def check_readiness(self, *, debug: bool) -> ReadinessReport:
        """Evaluate readiness by probing dependencies concurrently."""
        ...
