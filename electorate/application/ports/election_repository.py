"""Election repository port.

Constraints:
- At most one election outside its terminal phase, storage enforced
- Phase transitions are compare-and-swap on the expected current phase
- A transition and its tally or primary outcome commit together or not at all
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol
from uuid import UUID

from electorate.domain.models.election import Election, PhaseTransition
from electorate.domain.models.tally import PrimaryStanding, TallyRecord


class ElectionRepositoryProtocol(Protocol):
    """Persistence for elections and their recorded outcomes."""

    @abstractmethod
    async def create(self, election: Election) -> None:
        """Store a new election.

        Raises:
            ActiveElectionExistsError: Another election is not yet terminal.
        """
        ...

    @abstractmethod
    async def get(self, election_id: UUID) -> Election | None:
        """Load an election by id, None if unknown."""
        ...

    @abstractmethod
    async def get_active(self) -> Election | None:
        """Load the election that is not in its terminal phase, if any."""
        ...

    @abstractmethod
    async def list_active(self) -> list[Election]:
        """All elections not in their terminal phase."""
        ...

    @abstractmethod
    async def apply_transition(self, transition: PhaseTransition) -> bool:
        """Apply a phase transition atomically.

        In a single transaction:
        1. Move the election from ``from_phase`` to ``to_phase`` only if it
           is still in ``from_phase``
        2. Persist ``tally_record`` and the election winner, if present,
           replacing any record already stored for that stage
        3. Persist ``primary_result`` standings and the candidates'
           ``advanced_to_general`` flags, if present

        Args:
            transition: The transition and its outcome.

        Returns:
            True if applied, False if the election was no longer in
            ``from_phase`` (another worker got there first).
        """
        ...

    @abstractmethod
    async def get_tally_record(
        self, election_id: UUID, stage: str
    ) -> TallyRecord | None:
        """Load the recorded tally for a stage, None before it ran."""
        ...

    @abstractmethod
    async def get_primary_standings(
        self, election_id: UUID
    ) -> list[PrimaryStanding]:
        """Load the stored primary ranking, ordered by rank."""
        ...
