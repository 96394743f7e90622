"""Phase state machine service.

Drives elections through their phase plan and answers legality questions
for every other service.

Constraints:
- Phases move strictly forward, one window at a time
- Each transition's side effect runs exactly once: the outcome is computed
  first and applied together with a compare-and-swap on the phase, so a
  lost race discards it
- ``tick`` is idempotent and safe to call at any interval
- Entering an ADVANCEMENT phase ranks the primary and marks who advances
- Entering a TALLY phase tallies the stage and records the winner
- Leaving a TALLY phase tallies the stage again and replaces the record,
  so reveals accepted during the tally phase are counted before completion
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from structlog import get_logger

from electorate.application.ports.ballot_repository import BallotRepositoryProtocol
from electorate.application.ports.candidate_repository import (
    CandidateRepositoryProtocol,
)
from electorate.application.ports.election_repository import (
    ElectionRepositoryProtocol,
)
from electorate.application.ports.time_authority import TimeAuthorityProtocol
from electorate.domain.errors import (
    ElectionNotFoundError,
    InvalidTransitionError,
    PhaseViolationError,
)
from electorate.domain.models.candidate import tally_roster
from electorate.domain.models.election import (
    Election,
    Operation,
    PhaseKind,
    PhaseTransition,
    PhaseWindow,
    Stage,
)
from electorate.domain.models.tally import (
    PrimaryTallyResult,
    TallyOptions,
    TallyRecord,
)
from electorate.domain.services.tally import tally, tally_primary

logger = get_logger(__name__)


class PhaseMachineService:
    """Advances elections and guards phase-dependent operations.

    Example:
        >>> machine = PhaseMachineService(
        ...     election_repo=election_repo,
        ...     candidate_repo=candidate_repo,
        ...     ballot_repo=ballot_repo,
        ...     time_authority=time_authority,
        ... )
        >>> transitions = await machine.tick(election_id)
    """

    def __init__(
        self,
        election_repo: ElectionRepositoryProtocol,
        candidate_repo: CandidateRepositoryProtocol,
        ballot_repo: BallotRepositoryProtocol,
        time_authority: TimeAuthorityProtocol,
        tally_options: TallyOptions | None = None,
    ) -> None:
        """Initialize the phase machine.

        Args:
            election_repo: Election persistence (applies transitions).
            candidate_repo: Candidate rosters for tallies.
            ballot_repo: Revealed ballots for tallies.
            time_authority: Clock used when ``now`` is not supplied.
            tally_options: Weighting options for the general tally. The
                primary tally always counts one vote per ballot.
        """
        self._elections = election_repo
        self._candidates = candidate_repo
        self._ballots = ballot_repo
        self._time = time_authority
        self._tally_options = tally_options or TallyOptions()

    async def get_election(self, election_id: UUID) -> Election:
        """Load an election or raise ElectionNotFoundError."""
        election = await self._elections.get(election_id)
        if election is None:
            logger.warning("election_not_found", election_id=str(election_id))
            raise ElectionNotFoundError(election_id)
        return election

    async def current_phase(self, election_id: UUID) -> PhaseWindow:
        """Return the election's current phase window."""
        election = await self.get_election(election_id)
        return election.current_window

    async def guard(self, election_id: UUID, operation: Operation) -> Election:
        """Check that ``operation`` is legal in the election's current phase.

        Returns:
            The election, for the caller's further checks.

        Raises:
            ElectionNotFoundError: Unknown election.
            PhaseViolationError: The operation is not legal now.
        """
        election = await self.get_election(election_id)
        if not election.permits(operation):
            allowed = election.allowed_phases(operation)
            logger.warning(
                "phase_violation",
                election_id=str(election_id),
                phase=election.phase,
                operation=operation.value,
                allowed_phases=list(allowed),
            )
            raise PhaseViolationError(
                election_id=election_id,
                phase=election.phase,
                operation=operation.value,
                allowed_phases=allowed,
            )
        return election

    async def tick(
        self, election_id: UUID, now: datetime | None = None
    ) -> list[PhaseTransition]:
        """Apply every transition whose deadline has passed.

        While the current phase's end lies before ``now`` the next
        transition is applied with its side effects. Nothing happens when
        the current phase is still open or terminal.

        Args:
            election_id: Election to advance.
            now: Reference time; defaults to the time authority.

        Returns:
            Transitions applied by this call, in order.
        """
        now = now or self._time.now()
        log = logger.bind(election_id=str(election_id), now=now.isoformat())

        election = await self.get_election(election_id)
        applied: list[PhaseTransition] = []

        while election.is_due(now):
            transition = await self._build_transition(election, now, forced=False)
            if await self._elections.apply_transition(transition):
                self._log_transition(transition)
                applied.append(transition)
                election = election.with_phase(transition.to_phase)
                if transition.tally_record is not None:
                    election = election.with_winner(transition.winner_agent_id)
                continue

            log.info(
                "phase_transition_lost_race",
                from_phase=transition.from_phase,
                to_phase=transition.to_phase,
            )
            reloaded = await self.get_election(election_id)
            if reloaded.phase == election.phase:
                break
            election = reloaded

        if not applied:
            log.debug("phase_tick_noop", phase=election.phase)
        return applied

    async def advance(
        self, election_id: UUID, now: datetime | None = None
    ) -> PhaseTransition | None:
        """Force a single transition regardless of the schedule.

        Operator action. The transition's side effects run as they would
        on a scheduled tick.

        Returns:
            The applied transition, or None if another worker moved the
            election first.

        Raises:
            ElectionNotFoundError: Unknown election.
            InvalidTransitionError: The election is already terminal.
        """
        now = now or self._time.now()
        election = await self.get_election(election_id)
        log = logger.bind(election_id=str(election_id), phase=election.phase)

        if election.is_terminal():
            log.warning("advance_rejected_terminal")
            raise InvalidTransitionError(election_id, election.phase)

        transition = await self._build_transition(election, now, forced=True)
        if not await self._elections.apply_transition(transition):
            log.info("phase_transition_lost_race", to_phase=transition.to_phase)
            return None

        self._log_transition(transition)
        return transition

    async def recount(
        self, election_id: UUID, now: datetime | None = None
    ) -> TallyRecord | None:
        """Tally the current stage's revealed ballots without recording anything.

        Returns:
            The provisional record, or None when the roster is empty.
        """
        election = await self.get_election(election_id)
        return await self._run_tally(
            election, election.current_stage, now or self._time.now()
        )

    async def tick_all(self, now: datetime | None = None) -> list[PhaseTransition]:
        """Tick every election that is not yet terminal."""
        now = now or self._time.now()
        transitions: list[PhaseTransition] = []
        for election in await self._elections.list_active():
            transitions.extend(await self.tick(election.id, now))
        return transitions

    async def _build_transition(
        self, election: Election, now: datetime, *, forced: bool
    ) -> PhaseTransition:
        target = election.next_window
        if target is None:
            raise InvalidTransitionError(election.id, election.phase)

        tally_record: TallyRecord | None = None
        primary_result: PrimaryTallyResult | None = None

        if target.kind == PhaseKind.ADVANCEMENT:
            primary_result = await self._run_primary(election, target)
        elif target.kind == PhaseKind.TALLY:
            tally_record = await self._run_tally(election, target.stage, now)
        elif election.current_kind == PhaseKind.TALLY:
            tally_record = await self._run_tally(election, election.current_stage, now)

        return PhaseTransition(
            election_id=election.id,
            from_phase=election.phase,
            to_phase=target.name,
            to_kind=target.kind,
            stage=target.stage,
            occurred_at=now,
            forced=forced,
            tally_record=tally_record,
            primary_result=primary_result,
        )

    async def _run_primary(
        self, election: Election, target: PhaseWindow
    ) -> PrimaryTallyResult | None:
        log = logger.bind(election_id=str(election.id), entering=target.name)

        candidates = await self._candidates.list_for_election(election.id)
        roster = tally_roster(candidates)
        if not roster:
            log.warning("primary_tally_skipped_no_candidates")
            return None

        ballots = await self._ballots.list_votes(election.id, Stage.PRIMARY.value)
        if not ballots:
            log.warning("primary_tally_no_votes", candidates=len(roster))

        result = tally_primary(ballots, roster, election.top_n_advance)
        log.info(
            "primary_tally_completed",
            ballots=len(ballots),
            rounds=len(result.tally.rounds),
            advancing=[s.candidate_id for s in result.advancing_candidates],
        )
        return result

    async def _run_tally(
        self, election: Election, stage: Stage, now: datetime
    ) -> TallyRecord | None:
        log = logger.bind(election_id=str(election.id), stage=stage.value)

        candidates = await self._candidates.list_for_election(election.id)
        roster = tally_roster(
            candidates,
            general_stage_of_two_tier=(
                election.has_primary and stage == Stage.GENERAL
            ),
        )
        if not roster:
            log.warning("tally_skipped_no_candidates")
            return None

        ballots = await self._ballots.list_votes(election.id, stage.value)
        if not ballots:
            log.warning("tally_no_votes", candidates=len(roster))

        result = tally(ballots, roster, self._tally_options)
        log.info(
            "tally_completed",
            ballots=result.total_ballots,
            rounds=len(result.rounds),
            exhausted=result.exhausted_ballots,
            winner=result.winner.candidate_id if result.winner else None,
        )
        return TallyRecord(
            election_id=election.id,
            stage=stage.value,
            result=result,
            recorded_at=now,
        )

    @staticmethod
    def _log_transition(transition: PhaseTransition) -> None:
        logger.info(
            "phase_transition_applied",
            election_id=str(transition.election_id),
            from_phase=transition.from_phase,
            to_phase=transition.to_phase,
            forced=transition.forced,
            winner_agent_id=transition.winner_agent_id,
        )
