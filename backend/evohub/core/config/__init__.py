"""Configuration module for the Evohub backend.

Usage:
    from evohub.core.config import settings, Environment

    if settings.ENVIRONMENT == Environment.PRD:
        ...
"""

from evohub.core.config.enums import Environment, KeyValueBackend
from evohub.core.config.settings import Settings

__all__ = [
    "Settings",
    "Environment",
    "KeyValueBackend",
    "settings",
]

# Singleton settings instance
settings = Settings()
