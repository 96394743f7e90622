"""Ranked-choice instant-runoff tally.

Deterministic and side-effect free: the same ballots and roster in the
same order always produce the same result.

Algorithm:
1. Every ballot starts on its first listed choice that is on the roster;
   a ballot naming no roster candidate is exhausted from the start.
2. While more than one candidate is active, count the weight on each
   active candidate and record the round. Standings are sorted by weight,
   ties keep roster (declaration) order.
3. A leader holding more than half the counted weight wins.
4. Otherwise the last candidate in the sorted standings is eliminated
   (among tied lowest, the latest-declared) and each of its ballots moves
   to its next listed choice that is still active, or is exhausted.
5. When a single candidate remains it wins with 100% of the weight still
   on it.

Ballots are any objects exposing ``first_choice``, ``second_choice``,
``third_choice`` and ``autonomy_score``; candidates are any objects
exposing ``agent_id`` and ``display_name``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from electorate.domain.errors.tally import NoCandidatesError
from electorate.domain.models.tally import (
    CandidateStanding,
    PrimaryStanding,
    PrimaryTallyResult,
    TallyOptions,
    TallyResult,
    TallyRound,
)

DEFAULT_OPTIONS = TallyOptions()


class _BallotState:
    """Mutable per-ballot cursor used while counting."""

    __slots__ = ("choices", "position", "weight")

    def __init__(self, choices: tuple[str, ...], weight: float) -> None:
        self.choices = choices
        self.weight = weight
        self.position = -1

    @property
    def current(self) -> str | None:
        if 0 <= self.position < len(self.choices):
            return self.choices[self.position]
        return None

    def advance(self, active: set[str]) -> None:
        """Move to the next listed choice that is active, or exhaust."""
        for i in range(self.position + 1, len(self.choices)):
            if self.choices[i] in active:
                self.position = i
                return
        self.position = len(self.choices)


def _ballot_weight(ballot: Any, options: TallyOptions) -> float:
    if not options.use_weighting:
        return 1.0
    score = getattr(ballot, "autonomy_score", None)
    return float(score) if score else 1.0


def _ballot_choices(ballot: Any) -> tuple[str, ...]:
    return tuple(
        c
        for c in (
            getattr(ballot, "first_choice", None),
            getattr(ballot, "second_choice", None),
            getattr(ballot, "third_choice", None),
        )
        if c
    )


def _percentage(weight: float, total: float) -> float:
    if total <= 0:
        return 0.0
    return round(weight / total * 100, 2)


def tally(
    ballots: Sequence[Any],
    candidates: Sequence[Any],
    options: TallyOptions = DEFAULT_OPTIONS,
) -> TallyResult:
    """Run an instant-runoff tally.

    Args:
        ballots: Revealed ballots, in a stable order.
        candidates: The roster, in declaration order.
        options: Weighting options.

    Returns:
        TallyResult with every round. No ballots yields no rounds and no
        winner.

    Raises:
        NoCandidatesError: If the roster is empty.
    """
    names: dict[str, str] = {}
    for candidate in candidates:
        names.setdefault(candidate.agent_id, candidate.display_name)
    if not names:
        raise NoCandidatesError()

    order = {agent_id: i for i, agent_id in enumerate(names)}
    active: set[str] = set(names)

    states: list[_BallotState] = []
    for ballot in ballots:
        state = _BallotState(_ballot_choices(ballot), _ballot_weight(ballot, options))
        state.advance(active)
        states.append(state)

    total_weight = sum(s.weight for s in states)

    if not states:
        return TallyResult(
            winner=None,
            rounds=(),
            total_ballots=0,
            total_weight=0.0,
            weighting_used=options.use_weighting,
            exhausted_ballots=0,
        )

    rounds: list[TallyRound] = []
    winner: CandidateStanding | None = None

    while len(active) > 1:
        weights = {agent_id: 0.0 for agent_id in active}
        counted = 0.0
        active_ballots = 0
        for state in states:
            current = state.current
            if current in active:
                weights[current] += state.weight
                counted += state.weight
                active_ballots += 1

        ranked = sorted(active, key=lambda cid: (-weights[cid], order[cid]))
        standings = tuple(
            CandidateStanding(
                candidate_id=cid,
                candidate_name=names[cid],
                weight=weights[cid],
                percentage=_percentage(weights[cid], counted),
            )
            for cid in ranked
        )

        leader = standings[0]
        if leader.weight * 2 > counted:
            rounds.append(
                TallyRound(
                    round_number=len(rounds) + 1,
                    standings=standings,
                    counted_weight=counted,
                    active_ballots=active_ballots,
                )
            )
            winner = leader
            break

        eliminated = standings[-1].candidate_id
        rounds.append(
            TallyRound(
                round_number=len(rounds) + 1,
                standings=standings,
                counted_weight=counted,
                active_ballots=active_ballots,
                eliminated=eliminated,
            )
        )
        active.discard(eliminated)
        for state in states:
            if state.current == eliminated:
                state.advance(active)

    if winner is None:
        survivor = next(iter(active))
        remaining = sum(s.weight for s in states if s.current == survivor)
        winner = CandidateStanding(
            candidate_id=survivor,
            candidate_name=names[survivor],
            weight=remaining,
            percentage=100.0,
        )

    exhausted = sum(1 for s in states if s.current is None)

    return TallyResult(
        winner=winner,
        rounds=tuple(rounds),
        total_ballots=len(states),
        total_weight=total_weight,
        weighting_used=options.use_weighting,
        exhausted_ballots=exhausted,
    )


def tally_primary(
    ballots: Sequence[Any],
    candidates: Sequence[Any],
    top_n: int,
    options: TallyOptions = DEFAULT_OPTIONS,
) -> PrimaryTallyResult:
    """Tally a primary and rank every candidate for advancement.

    Ranking: the final round's standings in order, followed by the
    candidates eliminated earlier, most recently eliminated first. The
    first ``top_n`` ranked candidates advance.

    Args:
        ballots: Revealed primary ballots.
        candidates: The primary roster, in declaration order.
        top_n: How many candidates advance to the general stage.
        options: Weighting options.

    Returns:
        PrimaryTallyResult. With no ballots the standings are empty.

    Raises:
        NoCandidatesError: If the roster is empty.
        ValueError: If top_n is less than 1.
    """
    if top_n < 1:
        raise ValueError("top_n must be at least 1")

    result = tally(ballots, candidates, options)

    ordered: list[CandidateStanding] = []
    seen: set[str] = set()

    if result.rounds:
        for standing in result.rounds[-1].standings:
            ordered.append(standing)
            seen.add(standing.candidate_id)
        for tally_round in reversed(result.rounds):
            if tally_round.eliminated is None or tally_round.eliminated in seen:
                continue
            for standing in tally_round.standings:
                if standing.candidate_id == tally_round.eliminated:
                    ordered.append(standing)
                    seen.add(standing.candidate_id)
                    break
    elif result.winner is not None:
        ordered.append(result.winner)

    standings = tuple(
        PrimaryStanding(
            rank=i + 1,
            candidate_id=s.candidate_id,
            candidate_name=s.candidate_name,
            vote_count=round(s.weight),
            percentage=s.percentage,
            advanced=i < top_n,
        )
        for i, s in enumerate(ordered)
    )

    return PrimaryTallyResult(tally=result, standings=standings, top_n=top_n)
