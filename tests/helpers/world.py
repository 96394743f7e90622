"""Services wired over in-memory stubs, plus small builders.

``ElectionWorld`` gives service tests the whole application layer on one
ElectionStoreStub with a FakeTimeAuthority, the way the bootstrap wires
it for production.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from uuid import UUID

from electorate.application.services import (
    CandidacyService,
    CommitRevealService,
    ElectionAdminService,
    PhaseMachineService,
    RegistrationService,
    ResultsService,
)
from electorate.config import TEST_ELECTION_CONFIG, ElectionConfig
from electorate.domain.models.agent import ActivitySignals, Agent
from electorate.domain.models.ballot import BallotPayload
from electorate.domain.models.candidate import Candidate, Platform
from electorate.domain.models.election import PhaseTransition
from electorate.domain.models.tally import TallyOptions
from electorate.domain.services.commitment import compute_commitment_hash
from electorate.infrastructure.adapters.persistence.views import (
    AgentRepositoryView,
    CandidateRepositoryView,
)
from electorate.infrastructure.stubs import ElectionStoreStub, ReputationLookupStub
from tests.helpers.fake_time_authority import FakeTimeAuthority


def verified_signals(**overrides: object) -> ActivitySignals:
    """Signals that clear both the verified voter and the candidate bar."""
    values: dict[str, object] = {
        "account_age_days": 60,
        "post_count": 40,
        "comment_count": 80,
        "karma": 800,
        "claimed": True,
        "twitter_handle": "agent_handle",
    }
    values.update(overrides)
    return ActivitySignals(**values)  # type: ignore[arg-type]


def voter_only_signals() -> ActivitySignals:
    """Signals that clear the voter bar but not the candidate bar."""
    return ActivitySignals(
        account_age_days=20,
        post_count=25,
        comment_count=0,
        karma=150,
        claimed=True,
    )


def platform(manifesto: str = "Ship the roadmap") -> Platform:
    return Platform(manifesto=manifesto, governance="Open votes")


@dataclass
class ElectionWorld:
    """The application services over one shared in-memory store."""

    config: ElectionConfig = TEST_ELECTION_CONFIG
    time: FakeTimeAuthority = field(default_factory=FakeTimeAuthority)
    store: ElectionStoreStub = field(default_factory=ElectionStoreStub)
    reputation: ReputationLookupStub = field(default_factory=ReputationLookupStub)

    def __post_init__(self) -> None:
        self.agents = AgentRepositoryView(self.store)
        self.candidates = CandidateRepositoryView(self.store)
        self.phase_machine = PhaseMachineService(
            election_repo=self.store,
            candidate_repo=self.candidates,
            ballot_repo=self.store,
            time_authority=self.time,
            tally_options=TallyOptions(use_weighting=self.config.use_vote_weighting),
        )
        self.admin = ElectionAdminService(self.store, self.config, self.time)
        self.registration = RegistrationService(self.agents, self.reputation, self.time)
        self.candidacy = CandidacyService(
            phase_machine=self.phase_machine,
            agent_repo=self.agents,
            candidate_repo=self.candidates,
            time_authority=self.time,
            endorsement_threshold=self.config.endorsement_threshold,
        )
        self.commit_reveal = CommitRevealService(
            phase_machine=self.phase_machine,
            agent_repo=self.agents,
            candidate_repo=self.candidates,
            ballot_repo=self.store,
            time_authority=self.time,
        )
        self.results = ResultsService(
            phase_machine=self.phase_machine,
            election_repo=self.store,
            ballot_repo=self.store,
            agent_repo=self.agents,
            candidate_repo=self.candidates,
        )

    async def register(
        self, agent_id: str, signals: ActivitySignals | None = None
    ) -> Agent:
        self.reputation.set_profile(
            agent_id, signals or verified_signals(), display_name=agent_id.title()
        )
        result = await self.registration.register(agent_id)
        return result.agent

    async def move_to(self, election_id: UUID, phase: str) -> list[PhaseTransition]:
        """Set the clock just inside ``phase`` and tick into it."""
        election = await self.phase_machine.get_election(election_id)
        window = next(w for w in election.schedule if w.name == phase)
        self.time.set_time(window.starts_at + timedelta(seconds=1))
        return await self.phase_machine.tick(election_id)

    async def qualified_candidate(
        self, election_id: UUID, agent_id: str, endorsers: tuple[str, ...]
    ) -> Candidate:
        """Declare ``agent_id`` and endorse until qualified (declaration phase)."""
        candidate = await self.candidacy.declare(election_id, agent_id, platform())
        for endorser in endorsers:
            candidate = await self.candidacy.endorse(election_id, candidate.id, endorser)
        return candidate

    async def commit(
        self, election_id: UUID, agent_id: str, ballot: BallotPayload
    ) -> str:
        """Fetch the packet, commit ``ballot`` and return the nonce used."""
        packet = await self.commit_reveal.evaluation_packet(election_id, agent_id)
        digest = compute_commitment_hash(ballot, packet.eval_nonce)
        await self.commit_reveal.commit(election_id, agent_id, digest, packet.eval_nonce)
        return packet.eval_nonce
