"""Phase checker worker.

Advances every running election whose current phase has ended. Meant to
be run by an external scheduler (cron) at any interval; each pass is
idempotent and concurrent passes are safe because transitions are
compare-and-swap.

Usage:
    python -m electorate.workers.phase_checker --environment production
    python -m electorate.workers.phase_checker --create-schema
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime

from dotenv import load_dotenv
from structlog import get_logger

from electorate.application.ports.time_authority import TimeAuthorityProtocol
from electorate.application.services.phase_machine_service import PhaseMachineService
from electorate.bootstrap.database import (
    close_database_engine,
    database_configured,
)
from electorate.bootstrap.database import (
    create_schema as ensure_schema,
)
from electorate.bootstrap.logging import configure_structlog
from electorate.bootstrap.services import (
    get_phase_machine_service,
    get_time_authority,
)
from electorate.domain.models.election import PhaseTransition
from electorate.infrastructure.observability import (
    election_log_context,
    generate_run_id,
    set_run_id,
)

logger = get_logger(__name__)


class PhaseCheckWorker:
    """One scheduling pass over all running elections."""

    def __init__(
        self,
        phase_machine: PhaseMachineService,
        time_authority: TimeAuthorityProtocol,
    ) -> None:
        self._phase_machine = phase_machine
        self._time = time_authority

    async def run_once(self, now: datetime | None = None) -> list[PhaseTransition]:
        """Tick every running election.

        Storage failures propagate after being logged; the next scheduled
        pass retries from the stored phase.
        """
        now = now or self._time.now()
        run_id = generate_run_id()
        set_run_id(run_id)
        log = logger.bind(now=now.isoformat())
        log.info("phase_check_started")

        try:
            transitions = await self._phase_machine.tick_all(now)
        except Exception as e:
            log.error("phase_check_failed", error=str(e), error_type=type(e).__name__)
            raise

        for transition in transitions:
            with election_log_context(transition.election_id):
                log.info(
                    "phase_check_transition",
                    from_phase=transition.from_phase,
                    to_phase=transition.to_phase,
                    winner_agent_id=transition.winner_agent_id,
                )

        log.info("phase_check_completed", transitions=len(transitions))
        return transitions


async def run(environment: str, create_schema: bool) -> int:
    configure_structlog(environment)

    try:
        if create_schema and database_configured():
            await ensure_schema()
        worker = PhaseCheckWorker(get_phase_machine_service(), get_time_authority())
        await worker.run_once()
    finally:
        await close_database_engine()
    return 0


def main() -> None:
    load_dotenv()
    parser = argparse.ArgumentParser(
        description="Advance running elections whose current phase has ended."
    )
    parser.add_argument(
        "--environment",
        default="production",
        help="'production' for JSON logs, anything else for console logs",
    )
    parser.add_argument(
        "--create-schema",
        action="store_true",
        help="Create missing tables before the pass",
    )
    args = parser.parse_args()
    sys.exit(asyncio.run(run(args.environment, args.create_schema)))


if __name__ == "__main__":
    main()
