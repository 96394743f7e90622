"""Structured logging configuration with structlog.

Production output is one JSON object per line; every other environment
gets colored console output.

Log entry format (production):
    {
        "timestamp": "2026-01-01T00:00:00.000000Z",
        "level": "info",
        "event": "vote_committed",
        "run_id": "uuid",
        "election_id": "uuid",
        ...additional context
    }

Usage:
    from electorate.infrastructure.observability import configure_structlog

    configure_structlog(environment="production")
"""

import logging
import os
from typing import cast

import structlog
from structlog.typing import Processor

from electorate.infrastructure.observability.context import run_id_processor

LOG_LEVEL_ENV = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"


def _get_log_level() -> int:
    level_name = os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def build_processors(environment: str) -> list[Processor]:
    """Processor chain for ``environment``, renderer last."""
    shared_processors: list[Processor] = [
        # Context bound with bound_contextvars (election_id)
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        cast(Processor, run_id_processor),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=True)

    return shared_processors + [final_processor]


def configure_structlog(environment: str = "production") -> None:
    """Configure structlog once at process startup.

    Args:
        environment: 'production' for JSON output, anything else for console.
    """
    structlog.configure(
        processors=build_processors(environment),
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
