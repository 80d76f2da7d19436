"""Structured logging setup for pytest-rtm.

Library modules log through ``structlog.get_logger(__name__)`` and never
configure logging themselves. Entry points (the pytest plugin and the CLI)
call ``configure_logging`` once.
"""

from __future__ import annotations

import logging
from typing import Any

import structlog


def configure_logging(
    *,
    log_level: str = "INFO",
    json_format: bool = False,
    add_timestamp: bool = True,
    configure_stdlib: bool = True,
) -> None:
    """Route structlog through the standard library ``logging`` module.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, render JSON lines; otherwise human-readable.
        add_timestamp: If True, add an ISO timestamp to log entries.
        configure_stdlib: If True, install a root handler at ``log_level``.
            The pytest plugin passes False and leaves handlers to pytest's
            logging capture.

    Example:
        >>> configure_logging(log_level="DEBUG", json_format=False)
    """
    processors: list[Any] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if configure_stdlib:
        logging.basicConfig(
            format="%(message)s",
            level=getattr(logging, log_level.upper()),
        )


__all__ = ["configure_logging"]
