"""Results, statistics and audit service.

Once the election is complete, results are read back from what the phase
machine recorded when it left the tally phase. While the tally phase is
still open, late reveals are accepted, so results are recounted from the
revealed ballots on every request. Once results are public the full
commit-reveal trail is too, so any third party can recompute every
commitment hash.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from structlog import get_logger

from electorate.application.ports.agent_repository import AgentRepositoryProtocol
from electorate.application.ports.ballot_repository import BallotRepositoryProtocol
from electorate.application.ports.candidate_repository import (
    CandidateRepositoryProtocol,
)
from electorate.application.ports.election_repository import (
    ElectionRepositoryProtocol,
)
from electorate.application.services.phase_machine_service import PhaseMachineService
from electorate.domain.errors import NoVotesError, PhaseViolationError
from electorate.domain.models.ballot import BallotPayload, Vote, VoteCommitment
from electorate.domain.models.election import (
    Election,
    Operation,
    PhaseKind,
    Stage,
)
from electorate.domain.models.tally import PrimaryStanding, TallyRecord
from electorate.domain.services.commitment import verify_commitment

logger = get_logger(__name__)

AUDIT_INSTRUCTIONS = (
    "For each revealed vote, serialize its ballot as canonical JSON (sorted "
    "keys, no whitespace, UTF-8, unset choices omitted), append the nonce "
    "and compare SHA-256 of the result to the commitment hash."
)


@dataclass(frozen=True)
class AuditTrail:
    """Every commitment and revealed vote of an election."""

    election_id: UUID
    commitments: tuple[VoteCommitment, ...] = field(default_factory=tuple)
    votes: tuple[Vote, ...] = field(default_factory=tuple)
    instructions: str = AUDIT_INSTRUCTIONS

    def to_dict(self) -> dict[str, Any]:
        return {
            "election_id": str(self.election_id),
            "commitments": [c.to_dict() for c in self.commitments],
            "votes": [v.to_dict() for v in self.votes],
            "instructions": self.instructions,
        }


# Upper bounds (exclusive) of the autonomy-score brackets; the last is open.
AUTONOMY_BRACKETS: tuple[tuple[str, float | None], ...] = (
    ("low (0.1-0.3)", 0.3),
    ("medium (0.3-0.6)", 0.6),
    ("high (0.6-0.8)", 0.8),
    ("very_high (0.8-1.0)", None),
)


@dataclass(frozen=True)
class Turnout:
    registered_agents: int
    eligible_voters: int
    votes_committed: int
    votes_revealed: int

    @property
    def turnout_percentage(self) -> float:
        if self.eligible_voters <= 0:
            return 0.0
        return round(self.votes_revealed / self.eligible_voters * 100, 2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "registered_agents": self.registered_agents,
            "eligible_voters": self.eligible_voters,
            "votes_committed": self.votes_committed,
            "votes_revealed": self.votes_revealed,
            "turnout_percentage": self.turnout_percentage,
        }


@dataclass(frozen=True)
class AutonomyBracket:
    bracket: str
    count: int
    avg_score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "bracket": self.bracket,
            "count": self.count,
            "avg_score": self.avg_score,
        }


@dataclass(frozen=True)
class FirstChoiceShare:
    """Revealed first choices for one candidate.

    Attributes:
        first_choice: Agent id named as first choice.
        candidate_name: Display name, None if the id is not a candidate.
        vote_count: Ballots naming it first.
        weighted_total: Sum of those ballots' autonomy scores.
    """

    first_choice: str
    candidate_name: str | None
    vote_count: int
    weighted_total: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "first_choice": self.first_choice,
            "candidate_name": self.candidate_name,
            "vote_count": self.vote_count,
            "weighted_total": self.weighted_total,
        }


@dataclass(frozen=True)
class RationaleStats:
    """Length statistics over ballots that gave a rationale."""

    avg_length: float | None = None
    min_length: int | None = None
    max_length: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "avg_length": self.avg_length,
            "min_length": self.min_length,
            "max_length": self.max_length,
        }


@dataclass(frozen=True)
class ElectionStats:
    """Turnout and voting patterns of the deciding (general) stage."""

    election_id: UUID
    stage: str
    turnout: Turnout
    autonomy_distribution: tuple[AutonomyBracket, ...] = field(default_factory=tuple)
    first_choice_distribution: tuple[FirstChoiceShare, ...] = field(
        default_factory=tuple
    )
    rationale_stats: RationaleStats = field(default_factory=RationaleStats)

    def to_dict(self) -> dict[str, Any]:
        return {
            "election_id": str(self.election_id),
            "stage": self.stage,
            "turnout": self.turnout.to_dict(),
            "autonomy_distribution": [b.to_dict() for b in self.autonomy_distribution],
            "first_choice_distribution": [
                s.to_dict() for s in self.first_choice_distribution
            ],
            "rationale_stats": self.rationale_stats.to_dict(),
        }


class ResultsService:
    """Published outcomes of an election."""

    def __init__(
        self,
        phase_machine: PhaseMachineService,
        election_repo: ElectionRepositoryProtocol,
        ballot_repo: BallotRepositoryProtocol,
        agent_repo: AgentRepositoryProtocol,
        candidate_repo: CandidateRepositoryProtocol,
    ) -> None:
        self._phases = phase_machine
        self._elections = election_repo
        self._ballots = ballot_repo
        self._agents = agent_repo
        self._candidates = candidate_repo

    async def results(self, election_id: UUID) -> TallyRecord:
        """The general-stage tally.

        Recounted from the revealed ballots while the tally phase is open,
        read from the recorded tally afterwards.

        Raises:
            PhaseViolationError: The tally has not run yet.
            NoVotesError: No ballots were counted.
        """
        election = await self._phases.guard(election_id, Operation.PUBLISH_RESULTS)
        record: TallyRecord | None
        if election.current_kind == PhaseKind.TALLY:
            record = await self._phases.recount(election_id)
        else:
            record = await self._elections.get_tally_record(
                election_id, Stage.GENERAL.value
            )
        if record is None or record.result.total_ballots == 0:
            logger.warning("results_no_votes", election_id=str(election_id))
            raise NoVotesError(election_id)
        return record

    async def primary_results(self, election_id: UUID) -> list[PrimaryStanding]:
        """The stored primary ranking, empty for single-tier elections.

        Raises:
            PhaseViolationError: The primary has not been ranked yet.
        """
        election = await self._phases.get_election(election_id)
        if not election.has_primary:
            return []

        if not _reached(election, PhaseKind.ADVANCEMENT):
            allowed = tuple(
                w.name
                for w in election.schedule[_first_index(election, PhaseKind.ADVANCEMENT):]
            )
            logger.warning(
                "primary_results_not_ready",
                election_id=str(election_id),
                phase=election.phase,
            )
            raise PhaseViolationError(
                election_id=election_id,
                phase=election.phase,
                operation="primary_results",
                allowed_phases=allowed,
            )
        return await self._elections.get_primary_standings(election_id)

    async def audit_trail(self, election_id: UUID) -> AuditTrail:
        """All commitments and revealed votes, in commit and reveal order."""
        election = await self._phases.guard(election_id, Operation.PUBLISH_RESULTS)
        commitments = await self._ballots.list_commitments(election_id)
        votes: list[Vote] = []
        for stage in _stages(election):
            votes.extend(await self._ballots.list_votes(election_id, stage.value))

        logger.info(
            "audit_trail_published",
            election_id=str(election_id),
            commitments=len(commitments),
            votes=len(votes),
        )
        return AuditTrail(
            election_id=election_id,
            commitments=tuple(commitments),
            votes=tuple(votes),
        )

    async def stats(self, election_id: UUID) -> ElectionStats:
        """Turnout, autonomy brackets, first choices and rationale lengths.

        Covers the general stage, the one that decides the winner.
        Registered and eligible counts are over all registered agents.

        Raises:
            PhaseViolationError: Results are not public yet.
        """
        await self._phases.guard(election_id, Operation.PUBLISH_RESULTS)
        stage = Stage.GENERAL.value
        commitments = await self._ballots.list_commitments(election_id, stage)
        votes = [
            v for v in await self._ballots.list_votes(election_id, stage) if v.verified
        ]
        roster = await self._candidates.list_for_election(election_id)

        turnout = Turnout(
            registered_agents=await self._agents.count(),
            eligible_voters=await self._agents.count(voter_eligible_only=True),
            votes_committed=len(commitments),
            votes_revealed=len(votes),
        )
        logger.info(
            "election_stats_published",
            election_id=str(election_id),
            committed=turnout.votes_committed,
            revealed=turnout.votes_revealed,
        )
        return ElectionStats(
            election_id=election_id,
            stage=stage,
            turnout=turnout,
            autonomy_distribution=autonomy_distribution(votes),
            first_choice_distribution=first_choice_distribution(
                votes, {c.agent_id: c.display_name for c in roster}
            ),
            rationale_stats=rationale_stats(votes),
        )

    @staticmethod
    def verify_entry(vote: Vote, commitment_hash: str) -> bool:
        """Recompute a revealed vote's commitment and compare it."""
        payload: BallotPayload = vote.payload
        return verify_commitment(payload, vote.nonce, commitment_hash)


def _first_index(election: Election, kind: PhaseKind) -> int:
    for i, window in enumerate(election.schedule):
        if window.kind == kind:
            return i
    return len(election.schedule)


def _reached(election: Election, kind: PhaseKind) -> bool:
    current = next(
        i for i, w in enumerate(election.schedule) if w.name == election.phase
    )
    return _first_index(election, kind) <= current


def _stages(election: Election) -> list[Stage]:
    return [Stage.PRIMARY, Stage.GENERAL] if election.has_primary else [Stage.GENERAL]


def _bracket_of(score: float) -> str:
    for name, upper in AUTONOMY_BRACKETS:
        if upper is None or score < upper:
            return name
    return AUTONOMY_BRACKETS[-1][0]


def autonomy_distribution(votes: Sequence[Vote]) -> tuple[AutonomyBracket, ...]:
    """Voters per autonomy bracket, lowest first; empty brackets omitted."""
    scores: dict[str, list[float]] = {name: [] for name, _ in AUTONOMY_BRACKETS}
    for vote in votes:
        scores[_bracket_of(vote.autonomy_score)].append(vote.autonomy_score)
    return tuple(
        AutonomyBracket(
            bracket=name,
            count=len(values),
            avg_score=round(sum(values) / len(values), 4),
        )
        for name, values in scores.items()
        if values
    )


def first_choice_distribution(
    votes: Sequence[Vote], names: dict[str, str]
) -> tuple[FirstChoiceShare, ...]:
    """First choices by weighted total, heaviest first.

    Ties keep the order in which choices were first revealed.
    """
    counts: dict[str, int] = {}
    weights: dict[str, float] = {}
    for vote in votes:
        counts[vote.first_choice] = counts.get(vote.first_choice, 0) + 1
        weights[vote.first_choice] = (
            weights.get(vote.first_choice, 0.0) + vote.autonomy_score
        )
    order = {choice: i for i, choice in enumerate(counts)}
    return tuple(
        FirstChoiceShare(
            first_choice=choice,
            candidate_name=names.get(choice),
            vote_count=counts[choice],
            weighted_total=round(weights[choice], 4),
        )
        for choice in sorted(counts, key=lambda c: (-weights[c], order[c]))
    )


def rationale_stats(votes: Sequence[Vote]) -> RationaleStats:
    lengths = [len(v.rationale) for v in votes if v.rationale is not None]
    if not lengths:
        return RationaleStats()
    return RationaleStats(
        avg_length=round(sum(lengths) / len(lengths), 2),
        min_length=min(lengths),
        max_length=max(lengths),
    )
