"""Observability: structlog configuration and run/election log context.

Usage:
    from electorate.infrastructure.observability import (
        configure_structlog,
        generate_run_id,
        set_run_id,
    )

    configure_structlog(environment="production")
    set_run_id(generate_run_id())
"""

from electorate.infrastructure.observability.context import (
    election_log_context,
    generate_run_id,
    get_run_id,
    run_id_processor,
    set_run_id,
)
from electorate.infrastructure.observability.logging import (
    build_processors,
    configure_structlog,
)

__all__: list[str] = [
    "build_processors",
    "configure_structlog",
    "election_log_context",
    "generate_run_id",
    "get_run_id",
    "run_id_processor",
    "set_run_id",
]
