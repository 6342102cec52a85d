"""Configuration enums for type-safe settings.

These enums inherit from str to keep JSON serialization compatible.
"""

from enum import Enum


class Environment(str, Enum):
    """Deployment environments.

    Controls environment-specific behavior like log format, rate limit
    presets and whether internal admin credit tooling is reachable.
    """

    LOCAL = "local"
    TEST = "test"
    DEV = "dev"
    PRD = "prd"


class KeyValueBackend(str, Enum):
    """Key-value store backends used for counters and the credit ledger."""

    MEMORY = "memory"
    REDIS = "redis"
