"""Logging configuration using structlog.

Every module logs through ``structlog.get_logger(__name__)``; this module wires
those loggers into the stdlib logging tree and lets callers bind the
scope/tracker of the request being handled so background tasks inherit it.
"""

import logging
from typing import Optional

import structlog


def setup_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """
    Configure structlog for structured logging.

    :param log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    :param json_output: Render JSON lines; falls back to the console renderer
    """
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def request_context(scope: str, tracker_id: Optional[str] = None):
    """Bind scope and tracker to log lines emitted inside the block.

    Tasks created inside the block copy the context, so background enrichment
    logs carry the scope of the request that spawned it.
    """
    if tracker_id is None:
        return structlog.contextvars.bound_contextvars(scope=scope)
    return structlog.contextvars.bound_contextvars(scope=scope, tracker_id=tracker_id)

