"""Log context for election runs.

A run id identifies one worker pass or one operator command; it is carried
in a ContextVar so it survives ``await`` boundaries and lands on every log
entry emitted while it is set.

Usage:
    set_run_id(generate_run_id())
    with election_log_context(election_id):
        await machine.tick(election_id)
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any
from uuid import UUID, uuid4

import structlog

_run_id: ContextVar[str] = ContextVar("run_id", default="")


def generate_run_id() -> str:
    """Generate a new run id (UUID4)."""
    return str(uuid4())


def get_run_id() -> str:
    """Current run id, or an empty string when none is set."""
    return _run_id.get()


def set_run_id(run_id: str) -> None:
    _run_id.set(run_id)


def run_id_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor adding ``run_id`` to every entry when set."""
    run_id = get_run_id()
    if run_id:
        event_dict.setdefault("run_id", run_id)
    return event_dict


@contextmanager
def election_log_context(election_id: UUID) -> Iterator[None]:
    """Bind ``election_id`` to every log entry inside the block."""
    with structlog.contextvars.bound_contextvars(election_id=str(election_id)):
        yield
