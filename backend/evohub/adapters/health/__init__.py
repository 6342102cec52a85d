"""Health probe adapters."""

from evohub.adapters.health.kv import KeyValueHealthProbe

__all__ = ["KeyValueHealthProbe"]
