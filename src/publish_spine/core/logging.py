"""
Structured logging for publish runs.

Wraps structlog configuration so the CLI and tests set up logging the same
way: colored console output for interactive runs, JSON lines for CI (the
GitHub Actions job that triggers a publish).

Architecture:
    ::

        configure_logging(level="INFO", json_format=None)
              │
              ▼
        processor chain:
          1. merge_contextvars   (run_id, mode, document_id)
          2. TimeStamper(iso)
          3. add_log_level / calling module
          4. JSONRenderer  or  ConsoleRenderer

Examples:
    >>> import structlog
    >>> from publish_spine.core.logging import configure_logging
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = structlog.get_logger(__name__)
    >>> logger.info("page_written", path="index.html")

Tags:
    logging, structlog, observability, publish-spine
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.processors import CallsiteParameter
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "publish-spine"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "publish-spine",
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stderr.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.CallsiteParameterAdder([CallsiteParameter.MODULE]),
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if json_format:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    # httpx logs every request at INFO through the stdlib
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=logging.WARNING,
    )


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(mode="rebuild", run_id="abc123"):
            logger.info("pages_written")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self._context)
        return self

    def __exit__(self, *args) -> None:
        structlog.contextvars.unbind_contextvars(*self._context.keys())

    async def __aenter__(self) -> "LogContext":
        structlog.contextvars.bind_contextvars(**self._context)
        return self

    async def __aexit__(self, *args) -> None:
        structlog.contextvars.unbind_contextvars(*self._context.keys())


__all__ = [
    "configure_logging",
    "LogContext",
]
