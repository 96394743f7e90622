"""Tally precondition errors."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from electorate.domain.exceptions import ElectorateError


class NoVotesError(ElectorateError):
    """Raised when results are requested for an election with no ballots."""

    problem_type = "urn:electorate:tally:no-votes"
    title = "No Votes"
    status = 404

    def __init__(self, election_id: UUID | None = None) -> None:
        self.election_id = election_id
        suffix = f" in election {election_id}" if election_id else ""
        super().__init__(f"No votes cast{suffix}")

    def _problem_extensions(self) -> dict[str, Any]:
        if self.election_id is None:
            return {}
        return {"election_id": str(self.election_id)}


class NoCandidatesError(ElectorateError):
    """Raised when a tally is run against an empty roster."""

    problem_type = "urn:electorate:tally:no-candidates"
    title = "No Candidates"
    status = 409

    def __init__(self) -> None:
        super().__init__("No candidates to tally")
