"""Structured logging configuration using structlog."""

from __future__ import annotations

import logging
import sys
from typing import IO, Any

import structlog
from structlog.types import EventDict, Processor

from . import __version__
from .settings import settings
from .utils import request_id_ctx


def add_request_id(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add request ID to log event if available.

    Runs for structlog loggers and, through the formatter's pre-chain, for
    stdlib records from library modules too.
    """
    request_id = request_id_ctx.get("")
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add service name, environment, and version to every log entry."""
    event_dict["service"] = "eventfinder"
    event_dict["environment"] = settings.SENTRY_ENVIRONMENT
    event_dict["version"] = __version__
    return event_dict


def _shared_processors(json_logs: bool) -> list[Processor]:
    timestamp = "iso" if json_logs else "%Y-%m-%d %H:%M:%S"
    return [
        structlog.contextvars.merge_contextvars,
        add_request_id,
        add_app_context,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt=timestamp),
    ]


def configure_structlog(json_logs: bool | None = None, stream: IO[str] | None = None) -> None:
    """
    Configure structlog and route stdlib logging through the same renderer.

    Args:
        json_logs: True for JSON lines, False for the console renderer. None
                   picks JSON unless ``settings.DEBUG`` is on.
        stream: Where records are written. Defaults to stdout.
    """
    if json_logs is None:
        json_logs = not settings.DEBUG
    shared = _shared_processors(json_logs)

    structlog.configure(
        processors=[
            *shared,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if json_logs:
        renderers: list[Processor] = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(),
        ]
    formatter = structlog.stdlib.ProcessorFormatter(foreign_pre_chain=shared, processors=renderers)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    # reconfiguring replaces our handler instead of stacking a second one
    for existing in list(root.handlers):
        if isinstance(existing.formatter, structlog.stdlib.ProcessorFormatter):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

    # Set log levels for noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("recommend_failed", limit=limit, prompt_hash=fingerprint)
    """
    return structlog.get_logger(name)


__all__ = ["add_app_context", "add_request_id", "configure_structlog", "get_logger"]
