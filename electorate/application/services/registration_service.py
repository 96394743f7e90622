"""Agent registration service.

Two ways in:
- ``register``: the agent's reputation profile is looked up and classified
  against the verified voter and candidate bars
- ``register_general``: a lightweight identity claim admits the agent to
  the general tier with no activity minimums

Registration is idempotent on the agent id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from uuid import uuid4

from structlog import get_logger

from electorate.application.ports.agent_repository import AgentRepositoryProtocol
from electorate.application.ports.reputation_lookup import ReputationLookupProtocol
from electorate.application.ports.time_authority import TimeAuthorityProtocol
from electorate.domain.errors import AgentNotFoundError, IneligibleAgentError
from electorate.domain.models.agent import (
    ActivitySignals,
    Agent,
    VerificationClaim,
    VerificationMethod,
    VoterTier,
)
from electorate.domain.models.eligibility import EligibilityResult
from electorate.domain.services.eligibility import (
    autonomy_score,
    classify_candidate,
    classify_general_voter,
    classify_voter,
)

logger = get_logger(__name__)

GENERAL_AGENT_PREFIX = "general_"


@dataclass(frozen=True)
class RegistrationResult:
    """A registered agent and how it was classified.

    Attributes:
        agent: The stored agent.
        voter_eligibility: Voter classification behind ``voter_eligible``.
        candidate_eligibility: Candidate classification, None for general
            registrations.
        created: False when the agent was already registered.
    """

    agent: Agent
    voter_eligibility: EligibilityResult
    candidate_eligibility: EligibilityResult | None
    created: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent": self.agent.to_dict(),
            "voter_eligibility": self.voter_eligibility.to_dict(),
            "candidate_eligibility": (
                self.candidate_eligibility.to_dict()
                if self.candidate_eligibility
                else None
            ),
            "created": self.created,
        }


class RegistrationService:
    """Registers agents and keeps their eligibility current."""

    def __init__(
        self,
        agent_repo: AgentRepositoryProtocol,
        reputation: ReputationLookupProtocol,
        time_authority: TimeAuthorityProtocol,
    ) -> None:
        self._agents = agent_repo
        self._reputation = reputation
        self._time = time_authority

    async def register(
        self, agent_id: str, display_name: str | None = None
    ) -> RegistrationResult:
        """Register an agent from its reputation profile.

        An agent unknown to the reputation service is still registered,
        with zero signals and therefore no voting or candidacy rights.

        Raises:
            ReputationLookupError: The reputation service is unavailable.
        """
        if not agent_id or not agent_id.strip():
            raise ValueError("agent_id must not be empty")
        agent_id = agent_id.strip()
        log = logger.bind(agent_id=agent_id)

        existing = await self._agents.get(agent_id)
        if existing is not None:
            log.info("registration_existing_agent")
            return self._classified(existing, created=False)

        profile = await self._reputation.lookup(agent_id)
        if not profile.exists:
            log.warning("registration_profile_missing")

        signals = profile.signals
        voter = classify_voter(signals)
        candidate = classify_candidate(signals)
        now = self._time.now()

        stored = await self._agents.add(
            Agent(
                agent_id=agent_id,
                display_name=display_name or profile.display_name or agent_id,
                tier=VoterTier.PRIMARY_VERIFIED,
                voter_eligible=voter.eligible,
                candidate_eligible=candidate.eligible,
                autonomy_score=autonomy_score(signals),
                registered_at=now,
                eligibility_checked_at=now,
                signals=signals,
            )
        )
        log.info(
            "agent_registered",
            voter_eligible=voter.eligible,
            candidate_eligible=candidate.eligible,
            voter_issues=list(voter.issues),
        )
        return RegistrationResult(
            agent=stored,
            voter_eligibility=voter,
            candidate_eligibility=candidate,
            created=stored.registered_at == now,
        )

    async def register_general(
        self, display_name: str, claim: VerificationClaim
    ) -> RegistrationResult:
        """Register a general-tier voter from an identity claim.

        Raises:
            IneligibleAgentError: The claim is incomplete or its method unknown.
        """
        if not display_name or not display_name.strip():
            raise ValueError("display_name must not be empty")
        log = logger.bind(display_name=display_name, method=claim.method)

        result = classify_general_voter(claim)
        if not result.eligible:
            log.warning("general_registration_rejected", issues=list(result.issues))
            raise IneligibleAgentError(None, "register", result.issues)

        now = self._time.now()
        signals = ActivitySignals(
            twitter_handle=claim.twitter_handle,
            github_handle=claim.github_handle,
        )
        agent = await self._agents.add(
            Agent(
                agent_id=f"{GENERAL_AGENT_PREFIX}{uuid4().hex}",
                display_name=display_name.strip(),
                tier=VoterTier.GENERAL,
                voter_eligible=True,
                candidate_eligible=False,
                autonomy_score=autonomy_score(signals),
                registered_at=now,
                eligibility_checked_at=now,
                signals=signals,
                verification_method=VerificationMethod.parse(claim.method),
            )
        )
        log.info("general_agent_registered", agent_id=agent.agent_id)
        return RegistrationResult(
            agent=agent,
            voter_eligibility=result,
            candidate_eligibility=None,
            created=True,
        )

    async def refresh_eligibility(self, agent_id: str) -> RegistrationResult:
        """Re-read an agent's signals and re-classify it.

        General-tier agents have no reputation profile; they are returned
        unchanged.

        Raises:
            AgentNotFoundError: Unknown agent.
            ReputationLookupError: The reputation service is unavailable.
        """
        agent = await self._agents.get(agent_id)
        if agent is None:
            logger.warning("refresh_rejected_unknown_agent", agent_id=agent_id)
            raise AgentNotFoundError(agent_id)

        if agent.tier == VoterTier.GENERAL:
            return self._classified(agent, created=False)

        profile = await self._reputation.lookup(agent_id)
        signals = profile.signals
        voter = classify_voter(signals)
        candidate = classify_candidate(signals)

        refreshed = agent.with_eligibility(
            signals=signals,
            voter_eligible=voter.eligible,
            candidate_eligible=candidate.eligible,
            autonomy_score=autonomy_score(signals),
            checked_at=self._time.now(),
        )
        await self._agents.update_eligibility(refreshed)
        logger.info(
            "agent_eligibility_refreshed",
            agent_id=agent_id,
            voter_eligible=voter.eligible,
            candidate_eligible=candidate.eligible,
        )
        return RegistrationResult(
            agent=refreshed,
            voter_eligibility=voter,
            candidate_eligibility=candidate,
            created=False,
        )

    @staticmethod
    def _classified(agent: Agent, *, created: bool) -> RegistrationResult:
        if agent.tier == VoterTier.GENERAL:
            return RegistrationResult(
                agent=agent,
                voter_eligibility=EligibilityResult.from_issues(VoterTier.GENERAL, []),
                candidate_eligibility=None,
                created=created,
            )
        return RegistrationResult(
            agent=agent,
            voter_eligibility=classify_voter(agent.signals),
            candidate_eligibility=classify_candidate(agent.signals),
            created=created,
        )
