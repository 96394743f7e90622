"""Port views over a combined election store.

The election, agent and candidate ports all name a lookup ``get`` and the
agent and candidate ports both name an insert ``add``. A store that keeps
all four aggregates exposes them as ``get_agent``/``add_agent`` and
``get_candidate``/``add_candidate``; these views map the ports back.
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from electorate.domain.models.agent import Agent
from electorate.domain.models.candidate import Candidate, Endorsement


class CombinedAgentStore(Protocol):
    async def add_agent(self, agent: Agent) -> Agent: ...

    async def get_agent(self, agent_id: str) -> Agent | None: ...

    async def update_eligibility(self, agent: Agent) -> None: ...

    async def count_agents(self, *, voter_eligible_only: bool = False) -> int: ...


class CombinedCandidateStore(Protocol):
    async def add_candidate(self, candidate: Candidate) -> None: ...

    async def get_candidate(self, candidate_id: UUID) -> Candidate | None: ...

    async def get_by_agent(
        self, election_id: UUID, agent_id: str
    ) -> Candidate | None: ...

    async def list_for_election(self, election_id: UUID) -> list[Candidate]: ...

    async def add_endorsement(
        self, endorsement: Endorsement, qualification_threshold: int
    ) -> Candidate: ...

    async def disqualify(self, candidate_id: UUID, reason: str) -> Candidate: ...


class AgentRepositoryView:
    """AgentRepositoryProtocol served by a combined store."""

    def __init__(self, store: CombinedAgentStore) -> None:
        self._store = store

    async def add(self, agent: Agent) -> Agent:
        return await self._store.add_agent(agent)

    async def get(self, agent_id: str) -> Agent | None:
        return await self._store.get_agent(agent_id)

    async def update_eligibility(self, agent: Agent) -> None:
        await self._store.update_eligibility(agent)

    async def count(self, *, voter_eligible_only: bool = False) -> int:
        return await self._store.count_agents(voter_eligible_only=voter_eligible_only)


class CandidateRepositoryView:
    """CandidateRepositoryProtocol served by a combined store."""

    def __init__(self, store: CombinedCandidateStore) -> None:
        self._store = store

    async def add(self, candidate: Candidate) -> None:
        await self._store.add_candidate(candidate)

    async def get(self, candidate_id: UUID) -> Candidate | None:
        return await self._store.get_candidate(candidate_id)

    async def get_by_agent(self, election_id: UUID, agent_id: str) -> Candidate | None:
        return await self._store.get_by_agent(election_id, agent_id)

    async def list_for_election(self, election_id: UUID) -> list[Candidate]:
        return await self._store.list_for_election(election_id)

    async def add_endorsement(
        self, endorsement: Endorsement, qualification_threshold: int
    ) -> Candidate:
        return await self._store.add_endorsement(endorsement, qualification_threshold)

    async def disqualify(self, candidate_id: UUID, reason: str) -> Candidate:
        return await self._store.disqualify(candidate_id, reason)
