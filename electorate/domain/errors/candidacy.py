"""Candidacy and endorsement errors.

Constraints:
- One candidacy per agent per election
- One endorsement per (voter, candidate); never of oneself
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from electorate.domain.exceptions import ElectorateError


class CandidacyError(ElectorateError):
    """Base error for candidacy operations."""

    pass


class CandidateNotFoundError(CandidacyError):
    """Raised when a candidate id does not resolve."""

    problem_type = "urn:electorate:candidate:not-found"
    title = "Candidate Not Found"
    status = 404

    def __init__(self, candidate_id: UUID) -> None:
        self.candidate_id = candidate_id
        super().__init__(f"Candidate not found: {candidate_id}")

    def _problem_extensions(self) -> dict[str, Any]:
        return {"candidate_id": str(self.candidate_id)}


class DuplicateCandidacyError(CandidacyError):
    """Raised when an agent declares twice in the same election."""

    problem_type = "urn:electorate:candidate:duplicate"
    title = "Already Declared"
    status = 409

    def __init__(
        self,
        election_id: UUID,
        agent_id: str,
        existing_candidate_id: UUID | None = None,
    ) -> None:
        self.election_id = election_id
        self.agent_id = agent_id
        self.existing_candidate_id = existing_candidate_id
        super().__init__(
            f"Agent {agent_id} has already declared candidacy for election {election_id}"
        )

    def _problem_extensions(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "election_id": str(self.election_id),
            "agent_id": self.agent_id,
        }
        if self.existing_candidate_id is not None:
            result["candidate_id"] = str(self.existing_candidate_id)
        return result


class DuplicateEndorsementError(CandidacyError):
    """Raised when a voter endorses the same candidate twice."""

    problem_type = "urn:electorate:endorsement:duplicate"
    title = "Already Endorsed"
    status = 409

    def __init__(self, candidate_id: UUID, voter_agent_id: str) -> None:
        self.candidate_id = candidate_id
        self.voter_agent_id = voter_agent_id
        super().__init__(
            f"Agent {voter_agent_id} has already endorsed candidate {candidate_id}"
        )

    def _problem_extensions(self) -> dict[str, Any]:
        return {
            "candidate_id": str(self.candidate_id),
            "voter_agent_id": self.voter_agent_id,
        }


class SelfEndorsementError(CandidacyError):
    """Raised when a candidate tries to endorse themselves."""

    problem_type = "urn:electorate:endorsement:self"
    title = "Self Endorsement"
    status = 400

    def __init__(self, candidate_id: UUID, agent_id: str) -> None:
        self.candidate_id = candidate_id
        self.agent_id = agent_id
        super().__init__("You cannot endorse yourself")
