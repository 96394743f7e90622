"""Ballot repository port for the commit-reveal protocol.

Constraints:
- Unique (election_id, agent_id, stage) for nonces, commitments and votes
- A nonce is consumed by exactly one commitment
- Flipping ``revealed`` and storing the vote happen together
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol
from uuid import UUID

from electorate.domain.models.ballot import EvalNonce, Vote, VoteCommitment


class BallotRepositoryProtocol(Protocol):
    """Persistence for nonces, commitments and revealed votes."""

    @abstractmethod
    async def get_nonce(
        self, election_id: UUID, agent_id: str, stage: str
    ) -> EvalNonce | None:
        ...

    @abstractmethod
    async def create_nonce(self, nonce: EvalNonce) -> EvalNonce:
        """Store a nonce unless one already exists for the key.

        Concurrent callers for the same key all receive the single stored
        nonce.

        Returns:
            The stored nonce (the given one, or the one that won).
        """
        ...

    @abstractmethod
    async def get_commitment(
        self, election_id: UUID, agent_id: str, stage: str
    ) -> VoteCommitment | None:
        ...

    @abstractmethod
    async def commit(self, commitment: VoteCommitment) -> VoteCommitment:
        """Consume the nonce and store the commitment atomically.

        The nonce is marked used only if it equals ``eval_nonce`` and is
        still unused.

        Raises:
            InvalidNonceError: No matching unused nonce and no commitment.
            DuplicateCommitmentError: A commitment already exists.
        """
        ...

    @abstractmethod
    async def record_reveal(self, vote: Vote) -> Vote:
        """Flip the commitment's ``revealed`` flag and store the vote atomically.

        Raises:
            AlreadyRevealedError: The commitment was already revealed.
        """
        ...

    @abstractmethod
    async def list_votes(self, election_id: UUID, stage: str) -> list[Vote]:
        """Revealed votes of a stage in reveal order."""
        ...

    @abstractmethod
    async def list_commitments(
        self, election_id: UUID, stage: str | None = None
    ) -> list[VoteCommitment]:
        """Commitments in commit order, optionally restricted to one stage."""
        ...
