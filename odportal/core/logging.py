"""
Structured logging setup (structlog).

Console output in development, JSON when LOG_JSON is set. Events are
snake-case keys with key/value context, e.g.
    logger.info("od_request.created", request_id=..., approvers=2)
Use get_logger(__name__) instead of print().
"""

import logging
import sys

import structlog


def setup_logging(json_output: bool = False, log_level: str = "INFO") -> None:
    """Configure structlog once at startup.

    Args:
        json_output: JSON lines (deployed) instead of the coloured console renderer.
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL; unknown names fall back to INFO.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    processors.append(
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # uvicorn, supabase and httpx log through the stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)
    # supabase-py issues one httpx request per query; keep those out of INFO
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))


def get_logger(name: str) -> structlog.BoundLogger:
    """Logger for one module, usually get_logger(__name__)."""
    return structlog.get_logger(name)
