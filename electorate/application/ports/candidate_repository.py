"""Candidate repository port.

Constraints:
- Unique (election_id, agent_id) candidacy
- Unique (candidate_id, voter_agent_id) endorsement
- Endorsement insert, count increment and qualification are atomic
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol
from uuid import UUID

from electorate.domain.models.candidate import Candidate, Endorsement


class CandidateRepositoryProtocol(Protocol):
    """Persistence for candidacies and endorsements."""

    @abstractmethod
    async def add(self, candidate: Candidate) -> None:
        """Store a new candidacy.

        Raises:
            DuplicateCandidacyError: The agent already declared in this election.
        """
        ...

    @abstractmethod
    async def get(self, candidate_id: UUID) -> Candidate | None:
        ...

    @abstractmethod
    async def get_by_agent(self, election_id: UUID, agent_id: str) -> Candidate | None:
        ...

    @abstractmethod
    async def list_for_election(self, election_id: UUID) -> list[Candidate]:
        """All candidacies of an election in declaration order."""
        ...

    @abstractmethod
    async def add_endorsement(
        self, endorsement: Endorsement, qualification_threshold: int
    ) -> Candidate:
        """Record an endorsement and bump the candidate's count.

        This operation MUST be atomic:
        1. Insert the endorsement
        2. Increment endorsement_count
        3. Promote PENDING to QUALIFIED once the count reaches the threshold

        Returns:
            The candidate after the increment.

        Raises:
            DuplicateEndorsementError: The voter already endorsed this candidate.
            CandidateNotFoundError: The candidate does not exist.
        """
        ...

    @abstractmethod
    async def disqualify(self, candidate_id: UUID, reason: str) -> Candidate:
        """Mark a candidate DISQUALIFIED.

        Raises:
            CandidateNotFoundError: The candidate does not exist.
        """
        ...
