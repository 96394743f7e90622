"""Election administration service.

Creates elections from a named phase plan and the configured durations.

Constraints:
- At most one election outside its terminal phase; checked here and
  enforced again by storage
- The schedule is fixed at creation; only the phase machine moves it
"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from structlog import get_logger

from electorate.application.ports.election_repository import (
    ElectionRepositoryProtocol,
)
from electorate.application.ports.time_authority import TimeAuthorityProtocol
from electorate.config.election_config import ElectionConfig
from electorate.domain.errors import ActiveElectionExistsError
from electorate.domain.models.election import SINGLE_TIER_PLAN, Election

logger = get_logger(__name__)


class ElectionAdminService:
    """Operator-facing election lifecycle actions."""

    def __init__(
        self,
        election_repo: ElectionRepositoryProtocol,
        config: ElectionConfig,
        time_authority: TimeAuthorityProtocol,
    ) -> None:
        self._elections = election_repo
        self._config = config
        self._time = time_authority

    async def create_election(
        self,
        title: str,
        start: datetime | None = None,
        plan: str = SINGLE_TIER_PLAN,
        top_n_advance: int | None = None,
    ) -> Election:
        """Create an election whose first phase opens at ``start``.

        Args:
            title: Human-readable title.
            start: Opening of the first phase; defaults to now.
            plan: ``single_tier`` or ``two_tier``.
            top_n_advance: Primary finishers advancing; defaults to config.

        Returns:
            The stored election, in its first phase.

        Raises:
            ActiveElectionExistsError: Another election is still running.
            ValueError: Unknown plan, empty title or naive start time.
        """
        if not title or not title.strip():
            raise ValueError("title must not be empty")

        now = self._time.now()
        start = start or now
        log = logger.bind(title=title, plan=plan, start=start.isoformat())

        active = await self._elections.get_active()
        if active is not None:
            log.warning("election_create_rejected_active_exists", active_id=str(active.id))
            raise ActiveElectionExistsError(active.id)

        schedule = self._config.phase_plan(plan).build_schedule(start)
        election = Election(
            id=uuid4(),
            title=title.strip(),
            plan_name=plan,
            phase=schedule[0].name,
            schedule=schedule,
            top_n_advance=top_n_advance or self._config.top_n_advance,
            created_at=now,
        )
        await self._elections.create(election)

        log.info(
            "election_created",
            election_id=str(election.id),
            phases=[w.name for w in schedule],
        )
        return election

    async def get_active_election(self) -> Election | None:
        """The election that is still running, if any."""
        return await self._elections.get_active()
