"""Tally domain models.

Inputs and outputs of the ranked-choice instant-runoff tally:
- RankedBallot / RosterEntry: minimal input shapes (any object with the
  same attributes is accepted by the tally)
- CandidateStanding / TallyRound / TallyResult: the round-by-round outcome
- PrimaryStanding / PrimaryTallyResult: primary ranking and advancement
- TallyRecord: a tally outcome persisted against an election stage

All result types serialize with ``to_dict`` and rebuild with ``from_dict``
so a recorded tally can be stored as JSON and served unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID


@dataclass(frozen=True, eq=True)
class TallyOptions:
    """Tally configuration.

    Attributes:
        use_weighting: Weight each ballot by the autonomy score captured at
            commit time instead of counting it as 1.0.
    """

    use_weighting: bool = False


@dataclass(frozen=True, eq=True)
class RankedBallot:
    """A revealed ballot reduced to what the tally reads."""

    first_choice: str
    second_choice: str | None = None
    third_choice: str | None = None
    autonomy_score: float = 1.0


@dataclass(frozen=True, eq=True)
class RosterEntry:
    """A candidate as the tally sees it."""

    agent_id: str
    display_name: str


@dataclass(frozen=True, eq=True)
class CandidateStanding:
    """A candidate's weight in one round."""

    candidate_id: str
    candidate_name: str
    weight: float
    percentage: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "candidate_name": self.candidate_name,
            "weight": self.weight,
            "percentage": self.percentage,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CandidateStanding:
        return cls(
            candidate_id=data["candidate_id"],
            candidate_name=data["candidate_name"],
            weight=float(data["weight"]),
            percentage=float(data["percentage"]),
        )


@dataclass(frozen=True, eq=True)
class TallyRound:
    """One counting round.

    Attributes:
        round_number: 1-based round index.
        standings: Active candidates sorted by weight, ties in roster order.
        counted_weight: Total weight of non-exhausted ballots this round.
        active_ballots: Number of non-exhausted ballots this round.
        eliminated: Candidate removed at the end of the round, if any.
    """

    round_number: int
    standings: tuple[CandidateStanding, ...]
    counted_weight: float
    active_ballots: int
    eliminated: str | None = None

    @property
    def leader(self) -> CandidateStanding | None:
        return self.standings[0] if self.standings else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "round": self.round_number,
            "standings": [s.to_dict() for s in self.standings],
            "counted_weight": self.counted_weight,
            "active_ballots": self.active_ballots,
            "eliminated": self.eliminated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TallyRound:
        return cls(
            round_number=int(data["round"]),
            standings=tuple(CandidateStanding.from_dict(s) for s in data["standings"]),
            counted_weight=float(data["counted_weight"]),
            active_ballots=int(data["active_ballots"]),
            eliminated=data.get("eliminated"),
        )


@dataclass(frozen=True, eq=True)
class TallyResult:
    """Outcome of an instant-runoff tally.

    Attributes:
        winner: Winning candidate's final-round standing; None with no ballots.
        rounds: Every counting round, in order.
        total_ballots: Number of ballots supplied.
        total_weight: Sum of the weights of all supplied ballots.
        weighting_used: Whether autonomy weighting was applied.
        exhausted_ballots: Ballots with no active choice left at the end.
    """

    winner: CandidateStanding | None
    rounds: tuple[TallyRound, ...] = field(default_factory=tuple)
    total_ballots: int = 0
    total_weight: float = 0.0
    weighting_used: bool = False
    exhausted_ballots: int = 0

    @property
    def final_round(self) -> TallyRound | None:
        return self.rounds[-1] if self.rounds else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "winner": self.winner.to_dict() if self.winner else None,
            "rounds": [r.to_dict() for r in self.rounds],
            "total_ballots": self.total_ballots,
            "total_weight": self.total_weight,
            "weighting_used": self.weighting_used,
            "exhausted_ballots": self.exhausted_ballots,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TallyResult:
        winner = data.get("winner")
        return cls(
            winner=CandidateStanding.from_dict(winner) if winner else None,
            rounds=tuple(TallyRound.from_dict(r) for r in data.get("rounds", [])),
            total_ballots=int(data.get("total_ballots", 0)),
            total_weight=float(data.get("total_weight", 0.0)),
            weighting_used=bool(data.get("weighting_used", False)),
            exhausted_ballots=int(data.get("exhausted_ballots", 0)),
        )


@dataclass(frozen=True, eq=True)
class PrimaryStanding:
    """A candidate's final primary position."""

    rank: int
    candidate_id: str
    candidate_name: str
    vote_count: int
    percentage: float
    advanced: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "candidate_id": self.candidate_id,
            "candidate_name": self.candidate_name,
            "vote_count": self.vote_count,
            "percentage": self.percentage,
            "advanced_to_general": self.advanced,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PrimaryStanding:
        return cls(
            rank=int(data["rank"]),
            candidate_id=data["candidate_id"],
            candidate_name=data["candidate_name"],
            vote_count=int(data["vote_count"]),
            percentage=float(data["percentage"]),
            advanced=bool(data["advanced_to_general"]),
        )


@dataclass(frozen=True, eq=True)
class PrimaryTallyResult:
    """Primary tally plus the ranking that decides who advances."""

    tally: TallyResult
    standings: tuple[PrimaryStanding, ...]
    top_n: int

    @property
    def advancing_candidates(self) -> tuple[PrimaryStanding, ...]:
        return tuple(s for s in self.standings if s.advanced)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tally": self.tally.to_dict(),
            "standings": [s.to_dict() for s in self.standings],
            "top_n": self.top_n,
            "advancing_candidates": [s.to_dict() for s in self.advancing_candidates],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PrimaryTallyResult:
        return cls(
            tally=TallyResult.from_dict(data["tally"]),
            standings=tuple(PrimaryStanding.from_dict(s) for s in data["standings"]),
            top_n=int(data["top_n"]),
        )


@dataclass(frozen=True, eq=True)
class TallyRecord:
    """A tally outcome recorded for one stage of an election."""

    election_id: UUID
    stage: str
    result: TallyResult
    recorded_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "election_id": str(self.election_id),
            "stage": self.stage,
            "result": self.result.to_dict(),
            "recorded_at": self.recorded_at.isoformat(),
        }
