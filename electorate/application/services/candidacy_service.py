"""Candidacy service: declarations, endorsements and disqualification.

Constraints:
- Declarations only in the declaration phase, by candidate-eligible agents
- Endorsements in the declaration and campaign phases, by voter-eligible
  agents, once per (voter, candidate), never of oneself
- Reaching the endorsement threshold promotes PENDING to QUALIFIED in the
  same storage transaction as the increment
"""

from __future__ import annotations

from uuid import UUID, uuid4

from structlog import get_logger

from electorate.application.ports.agent_repository import AgentRepositoryProtocol
from electorate.application.ports.candidate_repository import (
    CandidateRepositoryProtocol,
)
from electorate.application.ports.time_authority import TimeAuthorityProtocol
from electorate.application.services.phase_machine_service import PhaseMachineService
from electorate.domain.errors import (
    AgentNotFoundError,
    CandidateNotFoundError,
    DuplicateCandidacyError,
    IneligibleAgentError,
    SelfEndorsementError,
)
from electorate.domain.models.agent import Agent
from electorate.domain.models.candidate import (
    Candidate,
    CandidateStatus,
    Endorsement,
    Platform,
    ordered_roster,
)
from electorate.domain.models.election import Operation
from electorate.domain.services.eligibility import classify_candidate

logger = get_logger(__name__)


class CandidacyService:
    """Candidate roster management."""

    def __init__(
        self,
        phase_machine: PhaseMachineService,
        agent_repo: AgentRepositoryProtocol,
        candidate_repo: CandidateRepositoryProtocol,
        time_authority: TimeAuthorityProtocol,
        endorsement_threshold: int,
    ) -> None:
        """Initialize the candidacy service.

        Args:
            phase_machine: Phase legality guard.
            agent_repo: Registered agents.
            candidate_repo: Candidacy and endorsement persistence.
            time_authority: Clock for declaration and endorsement times.
            endorsement_threshold: Endorsements that qualify a candidate.
        """
        if endorsement_threshold < 1:
            raise ValueError("endorsement_threshold must be at least 1")
        self._phases = phase_machine
        self._agents = agent_repo
        self._candidates = candidate_repo
        self._time = time_authority
        self._threshold = endorsement_threshold

    async def declare(
        self, election_id: UUID, agent_id: str, platform: Platform
    ) -> Candidate:
        """Declare candidacy.

        Raises:
            PhaseViolationError: Not in the declaration phase.
            AgentNotFoundError: Unknown agent.
            IneligibleAgentError: The agent does not meet the candidate bar.
            DuplicateCandidacyError: The agent already declared.
        """
        await self._phases.guard(election_id, Operation.DECLARE)
        log = logger.bind(election_id=str(election_id), agent_id=agent_id)

        agent = await self._require_agent(agent_id)
        if not agent.candidate_eligible:
            issues = classify_candidate(agent.signals).issues or (
                "Agent is not eligible to run",
            )
            log.warning("declaration_rejected_ineligible", issues=list(issues))
            raise IneligibleAgentError(agent_id, "declare candidacy", issues)

        existing = await self._candidates.get_by_agent(election_id, agent_id)
        if existing is not None:
            log.warning("declaration_rejected_duplicate", candidate_id=str(existing.id))
            raise DuplicateCandidacyError(election_id, agent_id, existing.id)

        candidate = Candidate(
            id=uuid4(),
            election_id=election_id,
            agent_id=agent_id,
            display_name=agent.display_name,
            platform=platform,
            declared_at=self._time.now(),
        )
        await self._candidates.add(candidate)
        log.info("candidacy_declared", candidate_id=str(candidate.id))
        return candidate

    async def endorse(
        self, election_id: UUID, candidate_id: UUID, voter_agent_id: str
    ) -> Candidate:
        """Endorse a candidate.

        Returns:
            The candidate after the endorsement, possibly newly QUALIFIED.

        Raises:
            PhaseViolationError: Not in the declaration or campaign phase.
            CandidateNotFoundError: No such active candidate in this election.
            AgentNotFoundError: Unknown endorser.
            IneligibleAgentError: The endorser may not vote.
            SelfEndorsementError: A candidate endorsing themselves.
            DuplicateEndorsementError: The endorser already endorsed them.
        """
        await self._phases.guard(election_id, Operation.ENDORSE)
        log = logger.bind(
            election_id=str(election_id),
            candidate_id=str(candidate_id),
            voter_agent_id=voter_agent_id,
        )

        candidate = await self._candidates.get(candidate_id)
        if (
            candidate is None
            or candidate.election_id != election_id
            or candidate.status == CandidateStatus.DISQUALIFIED
        ):
            log.warning("endorsement_rejected_unknown_candidate")
            raise CandidateNotFoundError(candidate_id)

        voter = await self._require_agent(voter_agent_id)
        if not voter.voter_eligible:
            log.warning("endorsement_rejected_ineligible")
            raise IneligibleAgentError(
                voter_agent_id, "endorse", ("Agent is not eligible to vote",)
            )

        if candidate.agent_id == voter_agent_id:
            log.warning("endorsement_rejected_self")
            raise SelfEndorsementError(candidate_id, voter_agent_id)

        updated = await self._candidates.add_endorsement(
            Endorsement(
                election_id=election_id,
                candidate_id=candidate_id,
                voter_agent_id=voter_agent_id,
                created_at=self._time.now(),
            ),
            self._threshold,
        )
        log.info(
            "candidate_endorsed",
            endorsement_count=updated.endorsement_count,
            status=updated.status.value,
        )
        if updated.status != candidate.status:
            log.info("candidate_qualified", threshold=self._threshold)
        return updated

    async def disqualify(self, candidate_id: UUID, reason: str) -> Candidate:
        """Operator action: remove a candidate from every roster."""
        if not reason or not reason.strip():
            raise ValueError("a disqualification reason is required")
        candidate = await self._candidates.disqualify(candidate_id, reason.strip())
        logger.warning(
            "candidate_disqualified",
            candidate_id=str(candidate_id),
            agent_id=candidate.agent_id,
            reason=reason,
        )
        return candidate

    async def list_candidates(self, election_id: UUID) -> list[Candidate]:
        """All candidacies of an election in declaration order."""
        await self._phases.get_election(election_id)
        return ordered_roster(await self._candidates.list_for_election(election_id))

    async def _require_agent(self, agent_id: str) -> Agent:
        agent = await self._agents.get(agent_id)
        if agent is None:
            logger.warning("agent_not_registered", agent_id=agent_id)
            raise AgentNotFoundError(agent_id)
        return agent
