"""
Structured logging for the controller.

Every module logs through ``get_logger(__name__)``. The controller is a
library, so output is only configured when the embedding process asks for it,
either directly via ``configure_logging`` or through ``DSC_SETUP_LOGGING``.
"""

import logging
import sys
from typing import TextIO, cast

import structlog
from structlog.typing import FilteringBoundLogger, Processor

from dsc_controller.core.config import Settings


def configure_logging(
    level: str = "INFO",
    *,
    json_output: bool = False,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structlog for controller events.

    Args:
        level: Minimum level name, e.g. ``"DEBUG"``.
        json_output: Render one JSON object per event instead of console lines.
        stream: Destination of rendered events; stderr when omitted.
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelNamesMapping()[level.upper()]
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=False,
    )


def configure_logging_from_settings(settings: Settings) -> None:
    """Apply ``log_level`` and ``environment``; JSON outside development."""
    configure_logging(
        settings.log_level,
        json_output=settings.environment != "development",
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """Get a structured logger instance with the given name."""
    return cast(FilteringBoundLogger, structlog.get_logger(name))
