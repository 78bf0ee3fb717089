"""Structured logging.

Configures structlog once per process. Call sites bind the invocation's
key/value context (query type, target, mode) instead of formatting it into
messages:

    log = get_logger(__name__).bind(query_type="GroupObjectIDs")
    log.info("query complete", records=3)
"""

from __future__ import annotations

import logging
import sys

import structlog

_configured = False


def configure_logging(level: str = "INFO", format: str = "console", force: bool = False) -> None:
    """Configure structlog and the stdlib root logger to match.

    Subsequent calls are no-ops unless ``force`` is set.
    """
    global _configured
    if _configured and not force:
        return

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
        force=True,
    )
    _configured = True


def get_logger(name: str):
    return structlog.get_logger(name)
