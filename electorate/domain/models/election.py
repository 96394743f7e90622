"""Election and phase-plan domain models.

An election runs through an ordered, forward-only list of phases chosen at
creation time. The list is data (a PhasePlan), so the single-tier and the
two-tier (primary + general) elections share one state machine.

Single-tier plan:
    declaration -> campaign -> sealed -> voting -> tallying -> complete

Two-tier plan:
    declaration -> primary_campaign -> primary_sealed -> primary_voting
    -> primary_complete -> general_campaign -> general_sealed
    -> general_voting -> tally -> complete

Constraints:
- Phases move strictly forward; the COMPLETE phase is terminal
- Every window except the terminal one has an end timestamp
- Each operation is legal only in a fixed set of phase kinds
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID

from electorate.domain.models.tally import PrimaryTallyResult, TallyRecord

SINGLE_TIER_PLAN = "single_tier"
TWO_TIER_PLAN = "two_tier"


class PhaseKind(str, Enum):
    """What a phase is for, independent of its name in a plan."""

    DECLARATION = "declaration"
    CAMPAIGN = "campaign"
    SEALED = "sealed"
    VOTING = "voting"
    ADVANCEMENT = "advancement"
    TALLY = "tally"
    COMPLETE = "complete"

    def is_terminal(self) -> bool:
        return self == PhaseKind.COMPLETE


class Stage(str, Enum):
    """Half of a two-tier election. Single-tier elections are all GENERAL."""

    PRIMARY = "primary"
    GENERAL = "general"


class Operation(str, Enum):
    """Requests whose legality depends on the current phase."""

    DECLARE = "declare"
    ENDORSE = "endorse"
    ISSUE_NONCE = "issue_nonce"
    COMMIT = "commit"
    REVEAL = "reveal"
    PUBLISH_RESULTS = "publish_results"


# Phase kinds in which each operation is legal. ISSUE_NONCE and COMMIT are
# further restricted in VOTING: only when the previous phase was SEALED.
OPERATION_PHASE_MATRIX: dict[Operation, frozenset[PhaseKind]] = {
    Operation.DECLARE: frozenset({PhaseKind.DECLARATION}),
    Operation.ENDORSE: frozenset({PhaseKind.DECLARATION, PhaseKind.CAMPAIGN}),
    Operation.ISSUE_NONCE: frozenset({PhaseKind.SEALED, PhaseKind.VOTING}),
    Operation.COMMIT: frozenset({PhaseKind.SEALED, PhaseKind.VOTING}),
    Operation.REVEAL: frozenset({PhaseKind.VOTING, PhaseKind.TALLY}),
    Operation.PUBLISH_RESULTS: frozenset({PhaseKind.TALLY, PhaseKind.COMPLETE}),
}

_LATE_COMMIT_OPERATIONS = frozenset({Operation.ISSUE_NONCE, Operation.COMMIT})


@dataclass(frozen=True, eq=True)
class PhaseSpec:
    """One entry of a phase plan.

    Attributes:
        name: Phase name stored on the election.
        kind: What the phase is for.
        stage: Which stage's ballots the phase concerns.
        duration: How long the phase lasts; None only for the terminal phase.
    """

    name: str
    kind: PhaseKind
    stage: Stage
    duration: timedelta | None

    def __post_init__(self) -> None:
        if self.kind.is_terminal() and self.duration is not None:
            raise ValueError(f"terminal phase '{self.name}' must not have a duration")
        if not self.kind.is_terminal() and (
            self.duration is None or self.duration <= timedelta(0)
        ):
            raise ValueError(f"phase '{self.name}' needs a positive duration")


@dataclass(frozen=True, eq=True)
class PhaseWindow:
    """A phase placed on the calendar."""

    name: str
    kind: PhaseKind
    stage: Stage
    starts_at: datetime
    ends_at: datetime | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "stage": self.stage.value,
            "starts_at": self.starts_at.isoformat(),
            "ends_at": self.ends_at.isoformat() if self.ends_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PhaseWindow:
        return cls(
            name=data["name"],
            kind=PhaseKind(data["kind"]),
            stage=Stage(data["stage"]),
            starts_at=datetime.fromisoformat(data["starts_at"]),
            ends_at=(
                datetime.fromisoformat(data["ends_at"]) if data.get("ends_at") else None
            ),
        )


@dataclass(frozen=True, eq=True)
class PhasePlan:
    """Ordered phases of an election, ending in exactly one terminal phase."""

    name: str
    phases: tuple[PhaseSpec, ...]

    def __post_init__(self) -> None:
        if not self.phases:
            raise ValueError("phase plan must contain at least one phase")
        if not self.phases[-1].kind.is_terminal():
            raise ValueError("phase plan must end with a terminal phase")
        if any(p.kind.is_terminal() for p in self.phases[:-1]):
            raise ValueError("only the last phase of a plan may be terminal")
        names = [p.name for p in self.phases]
        if len(names) != len(set(names)):
            raise ValueError("phase names must be unique within a plan")

    def build_schedule(self, start: datetime) -> tuple[PhaseWindow, ...]:
        """Lay the plan out on the calendar from ``start``.

        Args:
            start: Timezone-aware start of the first phase.

        Returns:
            One window per phase, back to back.
        """
        if start.tzinfo is None:
            raise ValueError("start must be timezone-aware (UTC)")

        windows: list[PhaseWindow] = []
        cursor = start
        for spec in self.phases:
            ends_at = cursor + spec.duration if spec.duration is not None else None
            windows.append(
                PhaseWindow(
                    name=spec.name,
                    kind=spec.kind,
                    stage=spec.stage,
                    starts_at=cursor,
                    ends_at=ends_at,
                )
            )
            if ends_at is not None:
                cursor = ends_at
        return tuple(windows)


def _days(count: int) -> timedelta:
    return timedelta(days=count)


def single_tier_plan(
    *,
    declaration_days: int = 10,
    campaign_days: int = 7,
    sealed_days: int = 2,
    voting_days: int = 1,
    tally_days: int = 2,
) -> PhasePlan:
    """Phase plan with a single general stage."""
    g = Stage.GENERAL
    return PhasePlan(
        name=SINGLE_TIER_PLAN,
        phases=(
            PhaseSpec("declaration", PhaseKind.DECLARATION, g, _days(declaration_days)),
            PhaseSpec("campaign", PhaseKind.CAMPAIGN, g, _days(campaign_days)),
            PhaseSpec("sealed", PhaseKind.SEALED, g, _days(sealed_days)),
            PhaseSpec("voting", PhaseKind.VOTING, g, _days(voting_days)),
            PhaseSpec("tallying", PhaseKind.TALLY, g, _days(tally_days)),
            PhaseSpec("complete", PhaseKind.COMPLETE, g, None),
        ),
    )


def two_tier_plan(
    *,
    declaration_days: int = 10,
    primary_campaign_days: int = 7,
    primary_sealed_days: int = 2,
    primary_voting_days: int = 1,
    advancement_days: int = 1,
    general_campaign_days: int = 10,
    general_sealed_days: int = 2,
    general_voting_days: int = 1,
    tally_days: int = 2,
) -> PhasePlan:
    """Phase plan with a primary stage feeding a general stage."""
    p, g = Stage.PRIMARY, Stage.GENERAL
    return PhasePlan(
        name=TWO_TIER_PLAN,
        phases=(
            PhaseSpec("declaration", PhaseKind.DECLARATION, p, _days(declaration_days)),
            PhaseSpec("primary_campaign", PhaseKind.CAMPAIGN, p, _days(primary_campaign_days)),
            PhaseSpec("primary_sealed", PhaseKind.SEALED, p, _days(primary_sealed_days)),
            PhaseSpec("primary_voting", PhaseKind.VOTING, p, _days(primary_voting_days)),
            PhaseSpec("primary_complete", PhaseKind.ADVANCEMENT, p, _days(advancement_days)),
            PhaseSpec("general_campaign", PhaseKind.CAMPAIGN, g, _days(general_campaign_days)),
            PhaseSpec("general_sealed", PhaseKind.SEALED, g, _days(general_sealed_days)),
            PhaseSpec("general_voting", PhaseKind.VOTING, g, _days(general_voting_days)),
            PhaseSpec("tally", PhaseKind.TALLY, g, _days(tally_days)),
            PhaseSpec("complete", PhaseKind.COMPLETE, g, None),
        ),
    )


@dataclass(frozen=True, eq=True)
class Election:
    """A single run of the decision process.

    Attributes:
        id: Election identifier.
        title: Human-readable title.
        plan_name: Name of the phase plan the schedule was built from.
        phase: Name of the current phase (one of the schedule's windows).
        schedule: Ordered phase windows.
        top_n_advance: How many primary finishers reach the general stage.
        created_at: Creation time (UTC).
        winner_agent_id: Set when a tally phase produced a winner.
    """

    id: UUID
    title: str
    plan_name: str
    phase: str
    schedule: tuple[PhaseWindow, ...]
    top_n_advance: int
    created_at: datetime
    winner_agent_id: str | None = None

    def __post_init__(self) -> None:
        if not self.schedule:
            raise ValueError("election schedule must not be empty")
        if self.phase not in {w.name for w in self.schedule}:
            raise ValueError(f"phase '{self.phase}' is not part of the schedule")
        if self.top_n_advance < 1:
            raise ValueError("top_n_advance must be at least 1")

    def _index(self) -> int:
        for i, window in enumerate(self.schedule):
            if window.name == self.phase:
                return i
        raise ValueError(f"phase '{self.phase}' is not part of the schedule")

    @property
    def current_window(self) -> PhaseWindow:
        return self.schedule[self._index()]

    @property
    def next_window(self) -> PhaseWindow | None:
        i = self._index() + 1
        return self.schedule[i] if i < len(self.schedule) else None

    @property
    def previous_window(self) -> PhaseWindow | None:
        i = self._index()
        return self.schedule[i - 1] if i > 0 else None

    @property
    def current_kind(self) -> PhaseKind:
        return self.current_window.kind

    @property
    def current_stage(self) -> Stage:
        return self.current_window.stage

    @property
    def has_primary(self) -> bool:
        return any(w.stage == Stage.PRIMARY for w in self.schedule)

    def is_terminal(self) -> bool:
        return self.current_kind.is_terminal()

    def is_due(self, now: datetime) -> bool:
        """True when the current phase's end lies before ``now``."""
        ends_at = self.current_window.ends_at
        return ends_at is not None and ends_at < now

    def permits(self, operation: Operation) -> bool:
        """Check whether ``operation`` is legal in the current phase."""
        window = self.current_window
        if window.kind not in OPERATION_PHASE_MATRIX[operation]:
            return False
        if operation in _LATE_COMMIT_OPERATIONS and window.kind == PhaseKind.VOTING:
            previous = self.previous_window
            return previous is not None and previous.kind == PhaseKind.SEALED
        return True

    def allowed_phases(self, operation: Operation) -> tuple[str, ...]:
        """Names of this election's phases in which ``operation`` is legal."""
        allowed: list[str] = []
        for i, window in enumerate(self.schedule):
            if window.kind not in OPERATION_PHASE_MATRIX[operation]:
                continue
            if operation in _LATE_COMMIT_OPERATIONS and window.kind == PhaseKind.VOTING:
                if i == 0 or self.schedule[i - 1].kind != PhaseKind.SEALED:
                    continue
            allowed.append(window.name)
        return tuple(allowed)

    def with_phase(self, phase: str) -> Election:
        return replace(self, phase=phase)

    def with_winner(self, winner_agent_id: str | None) -> Election:
        return replace(self, winner_agent_id=winner_agent_id)

    def to_dict(self) -> dict[str, Any]:
        window = self.current_window
        return {
            "id": str(self.id),
            "title": self.title,
            "plan": self.plan_name,
            "phase": self.phase,
            "phase_kind": window.kind.value,
            "stage": window.stage.value,
            "phase_ends_at": window.ends_at.isoformat() if window.ends_at else None,
            "schedule": [w.to_dict() for w in self.schedule],
            "top_n_advance": self.top_n_advance,
            "winner_agent_id": self.winner_agent_id,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True, eq=True)
class PhaseTransition:
    """One forward step of an election, with the outcome it must persist.

    The repository applies it as a compare-and-swap on ``from_phase``
    together with the tally or primary outcome, in one transaction.

    Attributes:
        election_id: Election being advanced.
        from_phase: Phase the election is expected to be in.
        to_phase: Phase being entered.
        to_kind: Kind of the phase being entered.
        stage: Stage of the phase being entered.
        occurred_at: When the transition was applied.
        forced: True for operator-forced advances.
        tally_record: Tally outcome to persist (entering or leaving a TALLY
            phase); it replaces any earlier record for the stage.
        primary_result: Primary ranking to persist (entering ADVANCEMENT).
    """

    election_id: UUID
    from_phase: str
    to_phase: str
    to_kind: PhaseKind
    stage: Stage
    occurred_at: datetime
    forced: bool = False
    tally_record: TallyRecord | None = field(default=None)
    primary_result: PrimaryTallyResult | None = field(default=None)

    @property
    def winner_agent_id(self) -> str | None:
        if self.tally_record is None or self.tally_record.result.winner is None:
            return None
        return self.tally_record.result.winner.candidate_id

    def to_dict(self) -> dict[str, Any]:
        return {
            "election_id": str(self.election_id),
            "from_phase": self.from_phase,
            "to_phase": self.to_phase,
            "to_kind": self.to_kind.value,
            "stage": self.stage.value,
            "occurred_at": self.occurred_at.isoformat(),
            "forced": self.forced,
            "winner_agent_id": self.winner_agent_id,
        }
