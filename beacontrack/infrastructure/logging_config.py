"""structlog configuration.

Modules log with ``structlog.get_logger(__name__)`` and event names such as
``archival.failed``; this module only decides how those events render.
"""

import logging
from typing import Any, List

import structlog

from beacontrack.infrastructure.config import get_log_format, get_log_level


def configure_logging(level: str = "", fmt: str = "") -> None:
    """
    Configure structlog for the process.

    Args:
        level: Log level name (defaults to LOG_LEVEL)
        fmt: "console" or "json" (defaults to LOG_FORMAT)
    """
    level = (level or get_log_level()).upper()
    fmt = fmt or get_log_format()

    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if fmt == "json":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        cache_logger_on_first_use=False,
    )
