"""In-memory stub for the election, agent, candidate and ballot ports.

Mirrors SqlElectionStore, including its storage guarantees:
- One non-terminal election
- Unique (election, agent) candidacy and (candidate, voter) endorsement
- Unique (election, agent, stage) nonce, commitment and vote
- Compare-and-swap phase transitions applied with their outcome
- Endorsement increment and qualification in one step

Agent and candidate ports are served through AgentRepositoryView and
CandidateRepositoryView, exactly as for the SQL store.
"""

from __future__ import annotations

import asyncio
from dataclasses import replace
from uuid import UUID

from electorate.domain.errors import (
    ActiveElectionExistsError,
    AlreadyRevealedError,
    CandidateNotFoundError,
    DuplicateCandidacyError,
    DuplicateCommitmentError,
    DuplicateEndorsementError,
    InvalidNonceError,
)
from electorate.domain.models.agent import Agent
from electorate.domain.models.ballot import EvalNonce, Vote, VoteCommitment
from electorate.domain.models.candidate import (
    Candidate,
    CandidateStatus,
    Endorsement,
    ordered_roster,
)
from electorate.domain.models.election import Election, PhaseTransition
from electorate.domain.models.tally import PrimaryStanding, TallyRecord

_VoterKey = tuple[UUID, str, str]


class ElectionStoreStub:
    """In-memory stub implementation of the election storage ports.

    All mutations that the SQL store runs in a transaction run here under
    one asyncio.Lock.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._reset()

    def clear(self) -> None:
        """Clear all stored data (for test cleanup)."""
        self._reset()

    def _reset(self) -> None:
        self._elections: dict[UUID, Election] = {}
        self._tally_records: dict[tuple[UUID, str], TallyRecord] = {}
        self._primary_standings: dict[UUID, list[PrimaryStanding]] = {}
        self._agents: dict[str, Agent] = {}
        self._candidates: dict[UUID, Candidate] = {}
        self._endorsements: dict[tuple[UUID, str], Endorsement] = {}
        self._nonces: dict[_VoterKey, EvalNonce] = {}
        self._commitments: dict[_VoterKey, VoteCommitment] = {}
        # Insertion order doubles as commit and reveal order
        self._votes: dict[_VoterKey, Vote] = {}
        self.transition_log: list[PhaseTransition] = []

    # Elections

    async def create(self, election: Election) -> None:
        async with self._lock:
            if not election.is_terminal():
                for existing in self._elections.values():
                    if not existing.is_terminal():
                        raise ActiveElectionExistsError(existing.id)
            self._elections[election.id] = election

    async def get(self, election_id: UUID) -> Election | None:
        return self._elections.get(election_id)

    async def get_active(self) -> Election | None:
        active = await self.list_active()
        return active[0] if active else None

    async def list_active(self) -> list[Election]:
        return sorted(
            (e for e in self._elections.values() if not e.is_terminal()),
            key=lambda e: e.created_at,
        )

    async def apply_transition(self, transition: PhaseTransition) -> bool:
        async with self._lock:
            election = self._elections.get(transition.election_id)
            if election is None or election.phase != transition.from_phase:
                return False

            updated = election.with_phase(transition.to_phase)
            record = transition.tally_record
            if record is not None:
                self._tally_records[(record.election_id, record.stage)] = record
                updated = updated.with_winner(transition.winner_agent_id)

            primary = transition.primary_result
            if primary is not None:
                self._primary_standings[election.id] = list(primary.standings)
                advancing = {s.candidate_id for s in primary.advancing_candidates}
                for cid, candidate in list(self._candidates.items()):
                    if (
                        candidate.election_id == election.id
                        and candidate.agent_id in advancing
                    ):
                        self._candidates[cid] = replace(
                            candidate, advanced_to_general=True
                        )

            self._elections[election.id] = updated
            self.transition_log.append(transition)
            return True

    async def get_tally_record(
        self, election_id: UUID, stage: str
    ) -> TallyRecord | None:
        return self._tally_records.get((election_id, stage))

    async def get_primary_standings(self, election_id: UUID) -> list[PrimaryStanding]:
        return sorted(self._primary_standings.get(election_id, []), key=lambda s: s.rank)

    # Agents

    async def add_agent(self, agent: Agent) -> Agent:
        async with self._lock:
            return self._agents.setdefault(agent.agent_id, agent)

    async def get_agent(self, agent_id: str) -> Agent | None:
        return self._agents.get(agent_id)

    async def update_eligibility(self, agent: Agent) -> None:
        async with self._lock:
            if agent.agent_id in self._agents:
                self._agents[agent.agent_id] = agent

    async def count_agents(self, *, voter_eligible_only: bool = False) -> int:
        return sum(
            1
            for a in self._agents.values()
            if a.voter_eligible or not voter_eligible_only
        )

    # Candidates

    async def add_candidate(self, candidate: Candidate) -> None:
        async with self._lock:
            for existing in self._candidates.values():
                if (
                    existing.election_id == candidate.election_id
                    and existing.agent_id == candidate.agent_id
                ):
                    raise DuplicateCandidacyError(
                        candidate.election_id, candidate.agent_id, existing.id
                    )
            self._candidates[candidate.id] = candidate

    async def get_candidate(self, candidate_id: UUID) -> Candidate | None:
        return self._candidates.get(candidate_id)

    async def get_by_agent(self, election_id: UUID, agent_id: str) -> Candidate | None:
        for candidate in self._candidates.values():
            if candidate.election_id == election_id and candidate.agent_id == agent_id:
                return candidate
        return None

    async def list_for_election(self, election_id: UUID) -> list[Candidate]:
        return ordered_roster(
            c for c in self._candidates.values() if c.election_id == election_id
        )

    async def add_endorsement(
        self, endorsement: Endorsement, qualification_threshold: int
    ) -> Candidate:
        async with self._lock:
            candidate = self._candidates.get(endorsement.candidate_id)
            if candidate is None or candidate.status == CandidateStatus.DISQUALIFIED:
                raise CandidateNotFoundError(endorsement.candidate_id)

            key = (endorsement.candidate_id, endorsement.voter_agent_id)
            if key in self._endorsements:
                raise DuplicateEndorsementError(
                    endorsement.candidate_id, endorsement.voter_agent_id
                )

            self._endorsements[key] = endorsement
            updated = candidate.with_endorsement(qualification_threshold)
            self._candidates[candidate.id] = updated
            return updated

    async def disqualify(self, candidate_id: UUID, reason: str) -> Candidate:
        async with self._lock:
            candidate = self._candidates.get(candidate_id)
            if candidate is None:
                raise CandidateNotFoundError(candidate_id)
            updated = candidate.disqualified(reason)
            self._candidates[candidate_id] = updated
            return updated

    def endorsement_count(self, candidate_id: UUID) -> int:
        """Stored endorsement rows for a candidate (test helper)."""
        return sum(1 for cid, _ in self._endorsements if cid == candidate_id)

    # Ballots

    async def get_nonce(
        self, election_id: UUID, agent_id: str, stage: str
    ) -> EvalNonce | None:
        return self._nonces.get((election_id, agent_id, stage))

    async def create_nonce(self, nonce: EvalNonce) -> EvalNonce:
        async with self._lock:
            key = (nonce.election_id, nonce.agent_id, nonce.stage)
            return self._nonces.setdefault(key, nonce)

    async def get_commitment(
        self, election_id: UUID, agent_id: str, stage: str
    ) -> VoteCommitment | None:
        return self._commitments.get((election_id, agent_id, stage))

    async def commit(self, commitment: VoteCommitment) -> VoteCommitment:
        async with self._lock:
            key = (commitment.election_id, commitment.agent_id, commitment.stage)
            existing = self._commitments.get(key)
            if existing is not None:
                raise DuplicateCommitmentError(
                    commitment.election_id, commitment.agent_id, existing.id
                )

            stored = self._nonces.get(key)
            if stored is None or stored.used or stored.nonce != commitment.eval_nonce:
                raise InvalidNonceError(commitment.election_id, commitment.agent_id)

            self._nonces[key] = replace(stored, used=True)
            self._commitments[key] = commitment
            return commitment

    async def record_reveal(self, vote: Vote) -> Vote:
        async with self._lock:
            key = (vote.election_id, vote.agent_id, vote.stage)
            commitment = self._commitments.get(key)
            if commitment is None or commitment.id != vote.commitment_id:
                raise AlreadyRevealedError(vote.election_id, vote.agent_id)
            if commitment.revealed or key in self._votes:
                raise AlreadyRevealedError(vote.election_id, vote.agent_id)

            self._commitments[key] = replace(commitment, revealed=True)
            self._votes[key] = vote
            return vote

    async def list_votes(self, election_id: UUID, stage: str) -> list[Vote]:
        return [
            v
            for v in self._votes.values()
            if v.election_id == election_id and v.stage == stage
        ]

    async def list_commitments(
        self, election_id: UUID, stage: str | None = None
    ) -> list[VoteCommitment]:
        return [
            c
            for c in self._commitments.values()
            if c.election_id == election_id and (stage is None or c.stage == stage)
        ]
