"""Phase and election lifecycle errors.

This module defines errors raised by the phase state machine and by the
legality guards that other components call before admitting a request.

Constraints:
- Phases move strictly forward; a terminal election cannot advance
- Every operation has a fixed set of phases in which it is legal
- At most one election is outside its terminal phase at any time
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any
from uuid import UUID

from electorate.domain.exceptions import ElectorateError


class PhaseViolationError(ElectorateError):
    """Raised when an operation is attempted outside its legal phase.

    Recoverable by waiting: the same request may succeed once the
    election reaches a phase in which the operation is allowed.

    HTTP Status: 409 Conflict

    Attributes:
        election_id: The election the operation targeted.
        phase: The election's current phase name.
        operation: The operation that was refused.
        allowed_phases: Phase names in which the operation is legal.
    """

    problem_type = "urn:electorate:phase:violation"
    title = "Phase Violation"
    status = 409

    def __init__(
        self,
        election_id: UUID,
        phase: str,
        operation: str,
        allowed_phases: Iterable[str] = (),
    ) -> None:
        """Initialize phase violation error.

        Args:
            election_id: The election the operation targeted.
            phase: Current phase name.
            operation: Name of the refused operation.
            allowed_phases: Phase names where the operation is legal.
        """
        self.election_id = election_id
        self.phase = phase
        self.operation = operation
        self.allowed_phases = tuple(allowed_phases)

        allowed_str = (
            f" Allowed in: {list(self.allowed_phases)}" if self.allowed_phases else ""
        )
        super().__init__(
            f"Operation '{operation}' is not permitted during phase '{phase}'.{allowed_str}"
        )

    def _problem_extensions(self) -> dict[str, Any]:
        return {
            "election_id": str(self.election_id),
            "phase": self.phase,
            "operation": self.operation,
            "allowed_phases": list(self.allowed_phases),
        }


class InvalidTransitionError(ElectorateError):
    """Raised when advancing an election that is already terminal.

    Fatal to the call, not to the process.

    Attributes:
        election_id: The election that could not advance.
        phase: The terminal phase the election is in.
    """

    problem_type = "urn:electorate:phase:invalid-transition"
    title = "Invalid Transition"
    status = 409

    def __init__(self, election_id: UUID, phase: str) -> None:
        self.election_id = election_id
        self.phase = phase
        super().__init__(
            f"Election {election_id} is in terminal phase '{phase}' and cannot advance"
        )

    def _problem_extensions(self) -> dict[str, Any]:
        return {"election_id": str(self.election_id), "phase": self.phase}


class ActiveElectionExistsError(ElectorateError):
    """Raised when creating an election while another one is still running.

    Attributes:
        existing_election_id: The election that is not yet terminal.
    """

    problem_type = "urn:electorate:election:active-exists"
    title = "Active Election Exists"
    status = 409

    def __init__(self, existing_election_id: UUID) -> None:
        self.existing_election_id = existing_election_id
        super().__init__(
            f"An active election already exists: {existing_election_id}"
        )

    def _problem_extensions(self) -> dict[str, Any]:
        return {"existing_election_id": str(self.existing_election_id)}


class ElectionNotFoundError(ElectorateError):
    """Raised when an election id does not resolve."""

    problem_type = "urn:electorate:election:not-found"
    title = "Election Not Found"
    status = 404

    def __init__(self, election_id: UUID) -> None:
        self.election_id = election_id
        super().__init__(f"Election not found: {election_id}")

    def _problem_extensions(self) -> dict[str, Any]:
        return {"election_id": str(self.election_id)}
