"""
Structured logging for the grade engine using structlog.

The engine only emits events; embedding applications call
``configure_logging`` once at startup to choose console or JSON output.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.contextvars import merge_contextvars
from structlog.typing import Processor


def configure_logging(log_level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure structlog and the standard library logging backend.

    Args:
        log_level: Minimum level name (e.g. "INFO", "DEBUG").
        json_output: Render JSON lines instead of human-readable console output.
    """
    processors: list[Processor] = [
        merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
    ]

    if json_output:
        processors.extend(
            [
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ]
        )
    else:
        processors.extend(
            [
                structlog.dev.set_exc_info,
                structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
            ]
        )

    logging.basicConfig(
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        level=getattr(logging, log_level.upper()),
        force=True,
    )

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def create_logger(name: str | None = None) -> Any:
    """
    Create a logger with optional name binding.

    Args:
        name: Optional logger name (e.g. "gradebook", "sync").

    Returns:
        A lazy structlog logger; configuration is resolved on first use,
        so module-level loggers honor a later ``configure_logging`` call.
    """
    if name:
        return structlog.get_logger(logger_name=name)

    return structlog.get_logger()
