"""Agent repository port."""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol

from electorate.domain.models.agent import Agent


class AgentRepositoryProtocol(Protocol):
    """Persistence for registered agents. Agents are never deleted."""

    @abstractmethod
    async def add(self, agent: Agent) -> Agent:
        """Register an agent.

        Idempotent: if the agent id is already registered the stored
        agent is returned unchanged.

        Returns:
            The stored agent.
        """
        ...

    @abstractmethod
    async def get(self, agent_id: str) -> Agent | None:
        """Load an agent, None if not registered."""
        ...

    @abstractmethod
    async def update_eligibility(self, agent: Agent) -> None:
        """Overwrite an agent's signals, flags, tier and autonomy score."""
        ...

    @abstractmethod
    async def count(self, *, voter_eligible_only: bool = False) -> int:
        """Number of registered agents, optionally only the voter-eligible."""
        ...
