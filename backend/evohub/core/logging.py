"""Logging setup for the Evohub backend.

Exposes a module-level ``logger`` and a ``ContextualLogger`` adapter that
carries structured dimensions (request id, owner, event type, ...).

Usage:
    from evohub.core.logging import logger

    logger.info("Plain message")

    request_logger = logger.with_context(request_id=rid, owner_type="guest")
    request_logger.info("Charged image job")

Records go through the standard library and are rendered by structlog's
``ProcessorFormatter``: ``key=value`` console lines locally, one JSON line per
record elsewhere so the dimensions stay searchable.
"""

import logging
import sys
from typing import Any, MutableMapping

import structlog
from structlog.types import Processor

from evohub.core.config import settings
from evohub.core.config.enums import Environment

_PRE_CHAIN: list[Processor] = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.ExtraAdder(),
    structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
]


def build_formatter(json_logs: bool) -> structlog.stdlib.ProcessorFormatter:
    """Return the handler formatter for JSON or console output."""
    renderer: Processor
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_PRE_CHAIN,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.EventRenamer("message"),
            renderer,
        ],
    )


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter that merges bound dimensions into every record."""

    def __init__(self, logger: logging.Logger, dimensions: dict[str, Any] | None = None):
        super().__init__(logger, dict(dimensions or {}))
        self.dimensions: dict[str, Any] = dict(dimensions or {})

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, Any]:
        extra = dict(self.dimensions)
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a child logger with additional dimensions bound."""
        merged = {**self.dimensions, **{k: v for k, v in dimensions.items() if v is not None}}
        return ContextualLogger(self.logger, merged)


def _configure_root_logger() -> logging.Logger:
    base = logging.getLogger("evohub")
    if base.handlers:
        return base

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(json_logs=settings.ENVIRONMENT != Environment.LOCAL))
    base.addHandler(handler)
    base.setLevel(settings.LOG_LEVEL.upper())
    base.propagate = False
    return base


logger = ContextualLogger(_configure_root_logger())
