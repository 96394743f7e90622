"""Candidate and endorsement domain models.

Constraints:
- One candidacy per (election, agent)
- PENDING -> QUALIFIED is monotonic and driven by the endorsement count
- DISQUALIFIED is an operator decision and removes the candidate from
  every roster
- One endorsement per (voter, candidate); self-endorsement is forbidden
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from electorate.domain.models.tally import RosterEntry


class CandidateStatus(str, Enum):
    """Candidacy status."""

    PENDING = "pending"
    QUALIFIED = "qualified"
    DISQUALIFIED = "disqualified"

    def is_active(self) -> bool:
        return self != CandidateStatus.DISQUALIFIED


@dataclass(frozen=True, eq=True)
class Platform:
    """What a candidate stands for.

    Attributes:
        manifesto: Free-text statement, required.
        governance/coordination/security/economy/culture: Optional positions.
    """

    manifesto: str
    governance: str | None = None
    coordination: str | None = None
    security: str | None = None
    economy: str | None = None
    culture: str | None = None

    def __post_init__(self) -> None:
        if not self.manifesto or not self.manifesto.strip():
            raise ValueError("manifesto must not be empty")

    def to_dict(self) -> dict[str, Any]:
        return {
            "manifesto": self.manifesto,
            "positions": {
                "governance": self.governance,
                "coordination": self.coordination,
                "security": self.security,
                "economy": self.economy,
                "culture": self.culture,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Platform:
        positions = data.get("positions") or {}
        return cls(
            manifesto=data["manifesto"],
            governance=positions.get("governance"),
            coordination=positions.get("coordination"),
            security=positions.get("security"),
            economy=positions.get("economy"),
            culture=positions.get("culture"),
        )


@dataclass(frozen=True, eq=True)
class Candidate:
    """An agent's candidacy in one election."""

    id: UUID
    election_id: UUID
    agent_id: str
    display_name: str
    platform: Platform
    declared_at: datetime
    endorsement_count: int = 0
    status: CandidateStatus = CandidateStatus.PENDING
    advanced_to_general: bool = False
    disqualification_reason: str | None = None

    def __post_init__(self) -> None:
        if self.declared_at.tzinfo is None:
            raise ValueError("declared_at must be timezone-aware (UTC)")
        if self.endorsement_count < 0:
            raise ValueError("endorsement_count must be non-negative")

    @property
    def is_qualified(self) -> bool:
        return self.status == CandidateStatus.QUALIFIED

    def with_endorsement(self, threshold: int) -> Candidate:
        """Return a copy with one more endorsement, promoted at ``threshold``."""
        count = self.endorsement_count + 1
        status = self.status
        if status == CandidateStatus.PENDING and count >= threshold:
            status = CandidateStatus.QUALIFIED
        return replace(self, endorsement_count=count, status=status)

    def disqualified(self, reason: str) -> Candidate:
        return replace(
            self,
            status=CandidateStatus.DISQUALIFIED,
            advanced_to_general=False,
            disqualification_reason=reason,
        )

    def to_roster_entry(self) -> RosterEntry:
        return RosterEntry(agent_id=self.agent_id, display_name=self.display_name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "election_id": str(self.election_id),
            "agent_id": self.agent_id,
            "display_name": self.display_name,
            "platform": self.platform.to_dict(),
            "endorsement_count": self.endorsement_count,
            "status": self.status.value,
            "advanced_to_general": self.advanced_to_general,
            "declared_at": self.declared_at.isoformat(),
        }


@dataclass(frozen=True, eq=True)
class Endorsement:
    """A voter's support for a candidate."""

    election_id: UUID
    candidate_id: UUID
    voter_agent_id: str
    created_at: datetime


def ordered_roster(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Sort candidates by declaration time (ties by agent id)."""
    return sorted(candidates, key=lambda c: (c.declared_at, c.agent_id))


def tally_roster(
    candidates: Iterable[Candidate], *, general_stage_of_two_tier: bool = False
) -> list[RosterEntry]:
    """Candidates a tally runs over, in declaration order.

    Disqualified candidates never appear. In the general stage of a
    two-tier election only candidates that advanced from the primary do.
    """
    roster = [
        c
        for c in ordered_roster(candidates)
        if c.status.is_active()
        and (c.advanced_to_general or not general_stage_of_two_tier)
    ]
    return [c.to_roster_entry() for c in roster]


def ballot_roster(
    candidates: Iterable[Candidate], *, general_stage_of_two_tier: bool = False
) -> list[Candidate]:
    """Candidates a ballot's first choice may name.

    QUALIFIED candidates, or in the general stage of a two-tier election
    the candidates that advanced and were not disqualified since.
    """
    ordered = ordered_roster(candidates)
    if general_stage_of_two_tier:
        return [c for c in ordered if c.advanced_to_general and c.status.is_active()]
    return [c for c in ordered if c.is_qualified]
