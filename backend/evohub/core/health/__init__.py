"""Readiness probing."""

from evohub.core.health.service import HealthService

__all__ = ["HealthService"]
