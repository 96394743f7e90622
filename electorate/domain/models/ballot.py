"""Ballot domain models for the commit-reveal protocol.

- BallotPayload: the ranked choices a voter commits to
- EvalNonce: the per-(election, agent, stage) nonce bound into the hash
- VoteCommitment: the sealed hash, stored during sealed/voting phases
- Vote: a verified reveal

Constraints:
- At most one nonce, commitment and vote per (election, agent, stage)
- A commitment is immutable except for its ``revealed`` flag
- Hashes and nonces are 64-character lowercase hex strings
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

HEX_256_PATTERN = re.compile(r"^[0-9a-f]{64}$")


def is_hex_256(value: str | None) -> bool:
    """Check that ``value`` is a 64-character lowercase hex string."""
    return isinstance(value, str) and HEX_256_PATTERN.match(value) is not None


@dataclass(frozen=True, eq=True)
class BallotPayload:
    """Ranked choices plus an optional rationale.

    Only ``first_choice`` is mandatory. Choices are agent ids.
    """

    first_choice: str
    second_choice: str | None = None
    third_choice: str | None = None
    rationale: str | None = None

    def __post_init__(self) -> None:
        if not self.first_choice:
            raise ValueError("first_choice is required")

    @property
    def choices(self) -> tuple[str, ...]:
        return tuple(
            c
            for c in (self.first_choice, self.second_choice, self.third_choice)
            if c is not None
        )

    def to_dict(self) -> dict[str, Any]:
        """Mapping used for canonical serialization; absent fields are omitted."""
        data: dict[str, Any] = {
            "first_choice": self.first_choice,
            "second_choice": self.second_choice,
            "third_choice": self.third_choice,
            "rationale": self.rationale,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True, eq=True)
class EvalNonce:
    """Nonce issued with an evaluation packet and consumed by a commitment."""

    election_id: UUID
    agent_id: str
    stage: str
    nonce: str
    issued_at: datetime
    used: bool = False


@dataclass(frozen=True, eq=True)
class VoteCommitment:
    """A sealed ballot."""

    id: UUID
    election_id: UUID
    agent_id: str
    stage: str
    commitment_hash: str
    eval_nonce: str
    autonomy_score: float
    committed_at: datetime
    revealed: bool = False

    def __post_init__(self) -> None:
        if not is_hex_256(self.commitment_hash):
            raise ValueError("commitment_hash must be 64 lowercase hex characters")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "election_id": str(self.election_id),
            "agent_id": self.agent_id,
            "stage": self.stage,
            "commitment_hash": self.commitment_hash,
            "autonomy_score": self.autonomy_score,
            "committed_at": self.committed_at.isoformat(),
            "revealed": self.revealed,
        }


@dataclass(frozen=True, eq=True)
class Vote:
    """A revealed ballot whose hash matched its commitment."""

    id: UUID
    commitment_id: UUID
    election_id: UUID
    agent_id: str
    stage: str
    first_choice: str
    nonce: str
    autonomy_score: float
    revealed_at: datetime
    second_choice: str | None = None
    third_choice: str | None = None
    rationale: str | None = None
    verified: bool = True

    @property
    def payload(self) -> BallotPayload:
        return BallotPayload(
            first_choice=self.first_choice,
            second_choice=self.second_choice,
            third_choice=self.third_choice,
            rationale=self.rationale,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "commitment_id": str(self.commitment_id),
            "election_id": str(self.election_id),
            "agent_id": self.agent_id,
            "stage": self.stage,
            "first_choice": self.first_choice,
            "second_choice": self.second_choice,
            "third_choice": self.third_choice,
            "rationale": self.rationale,
            "nonce": self.nonce,
            "autonomy_score": self.autonomy_score,
            "verified": self.verified,
            "revealed_at": self.revealed_at.isoformat(),
        }
