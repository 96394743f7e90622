"""Commit-reveal protocol errors.

These are caller-state errors: they are surfaced verbatim and never
retried automatically. ``HashMismatchError`` is the exception: it is an
integrity failure and deliberately carries no detail about which half
of the hash input was wrong.

Constraints:
- One nonce, one commitment and one revealed ballot per agent per stage
- A reveal must hash to exactly the committed value
- Storage uniqueness is the final guard; code checks first for clarity
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from electorate.domain.exceptions import ElectorateError


class CommitRevealError(ElectorateError):
    """Base error for commit-reveal operations."""

    pass


class InvalidNonceError(CommitRevealError):
    """Raised when the supplied nonce is not the agent's stored unused nonce.

    HTTP Status: 400 Bad Request

    Attributes:
        election_id: The election being voted in.
        agent_id: The committing agent.
    """

    problem_type = "urn:electorate:ballot:invalid-nonce"
    title = "Invalid Nonce"
    status = 400

    def __init__(self, election_id: UUID, agent_id: str) -> None:
        self.election_id = election_id
        self.agent_id = agent_id
        super().__init__(
            f"Invalid evaluation nonce for agent {agent_id} in election {election_id}. "
            "Fetch an evaluation packet first."
        )

    def _problem_extensions(self) -> dict[str, Any]:
        return {"election_id": str(self.election_id), "agent_id": self.agent_id}


class InvalidCommitmentHashError(CommitRevealError):
    """Raised when a commitment hash is not a 64-character hex SHA-256 digest."""

    problem_type = "urn:electorate:ballot:invalid-commitment-hash"
    title = "Invalid Commitment Hash"
    status = 400

    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(
            "commitment_hash must be a 64-character hexadecimal SHA-256 digest"
        )


class DuplicateCommitmentError(CommitRevealError):
    """Raised when an agent already committed a ballot for this stage.

    HTTP Status: 409 Conflict

    Attributes:
        election_id: The election being voted in.
        agent_id: The committing agent.
        existing_commitment_id: The stored commitment, when known.
    """

    problem_type = "urn:electorate:ballot:duplicate-commitment"
    title = "Duplicate Commitment"
    status = 409

    def __init__(
        self,
        election_id: UUID,
        agent_id: str,
        existing_commitment_id: UUID | None = None,
    ) -> None:
        self.election_id = election_id
        self.agent_id = agent_id
        self.existing_commitment_id = existing_commitment_id
        super().__init__(
            f"Agent {agent_id} has already committed a vote in election {election_id}"
        )

    def _problem_extensions(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "election_id": str(self.election_id),
            "agent_id": self.agent_id,
        }
        if self.existing_commitment_id is not None:
            result["commitment_id"] = str(self.existing_commitment_id)
        return result


class NotCommittedError(CommitRevealError):
    """Raised when revealing without a prior commitment (unknown commitment)."""

    problem_type = "urn:electorate:ballot:not-committed"
    title = "No Commitment"
    status = 400

    def __init__(self, election_id: UUID, agent_id: str) -> None:
        self.election_id = election_id
        self.agent_id = agent_id
        super().__init__(
            f"No vote commitment found for agent {agent_id}. "
            "You must commit before revealing."
        )

    def _problem_extensions(self) -> dict[str, Any]:
        return {"election_id": str(self.election_id), "agent_id": self.agent_id}


class AlreadyRevealedError(CommitRevealError):
    """Raised when a commitment has already been opened."""

    problem_type = "urn:electorate:ballot:already-revealed"
    title = "Already Revealed"
    status = 409

    def __init__(self, election_id: UUID, agent_id: str) -> None:
        self.election_id = election_id
        self.agent_id = agent_id
        super().__init__(f"Agent {agent_id} has already revealed their vote")

    def _problem_extensions(self) -> dict[str, Any]:
        return {"election_id": str(self.election_id), "agent_id": self.agent_id}


class HashMismatchError(CommitRevealError):
    """Raised when a reveal does not hash to the stored commitment.

    The message is fixed. Neither the payload nor the nonce is echoed,
    and no hint is given about which one was wrong.
    """

    problem_type = "urn:electorate:ballot:verification-failed"
    title = "Verification Failed"
    status = 400

    def __init__(self) -> None:
        super().__init__("Vote verification failed")


class UnknownCandidateError(CommitRevealError):
    """Raised when a ballot's first choice is not a candidate on the ballot."""

    problem_type = "urn:electorate:ballot:unknown-candidate"
    title = "Unknown Candidate"
    status = 400

    def __init__(self, election_id: UUID, candidate_agent_id: str) -> None:
        self.election_id = election_id
        self.candidate_agent_id = candidate_agent_id
        super().__init__(
            f"Invalid first_choice: {candidate_agent_id} is not a qualified candidate"
        )

    def _problem_extensions(self) -> dict[str, Any]:
        return {
            "election_id": str(self.election_id),
            "first_choice": self.candidate_agent_id,
        }
