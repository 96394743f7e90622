"""Reputation lookup port.

The reputation service is the source of the activity signals the
eligibility gate classifies. Only its interface is modelled here.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import Protocol

from electorate.domain.models.agent import ActivitySignals


@dataclass(frozen=True)
class ReputationProfile:
    """Public profile of an agent on the reputation service.

    Attributes:
        agent_id: The handle that was looked up.
        exists: False when the service has no such agent.
        display_name: Name reported by the service.
        signals: Activity snapshot; all zero when the agent does not exist.
    """

    agent_id: str
    exists: bool
    display_name: str | None = None
    signals: ActivitySignals = ActivitySignals()

    @classmethod
    def missing(cls, agent_id: str) -> ReputationProfile:
        return cls(agent_id=agent_id, exists=False)


class ReputationLookupProtocol(Protocol):
    """Client for the external reputation service."""

    @abstractmethod
    async def lookup(self, agent_id: str) -> ReputationProfile:
        """Fetch an agent's profile.

        A missing profile is not an error: it yields ``exists=False`` and
        zero signals.

        Raises:
            ReputationLookupError: The service could not be reached or
                answered with a server error.
        """
        ...
