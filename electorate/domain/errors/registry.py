"""Agent registry errors.

Constraints:
- Agents are registered once and never deleted
- Every gated action reports all unmet eligibility conditions at once
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from electorate.domain.exceptions import ElectorateError


class AgentNotFoundError(ElectorateError):
    """Raised when an agent id is not registered."""

    problem_type = "urn:electorate:agent:not-found"
    title = "Agent Not Registered"
    status = 404

    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(f"Agent not registered: {agent_id}")

    def _problem_extensions(self) -> dict[str, Any]:
        return {"agent_id": self.agent_id}


class IneligibleAgentError(ElectorateError):
    """Raised when an agent fails the eligibility gate for an action.

    HTTP Status: 403 Forbidden

    Attributes:
        agent_id: The agent that was refused (None for failed registrations).
        action: What the agent tried to do (vote, endorse, declare, register).
        issues: Every unmet requirement, in check order.
    """

    problem_type = "urn:electorate:agent:ineligible"
    title = "Not Eligible"
    status = 403

    def __init__(
        self,
        agent_id: str | None,
        action: str,
        issues: Iterable[str] = (),
    ) -> None:
        self.agent_id = agent_id
        self.action = action
        self.issues = tuple(issues)
        who = f"Agent {agent_id}" if agent_id else "Agent"
        detail = f": {'; '.join(self.issues)}" if self.issues else ""
        super().__init__(f"{who} is not eligible to {action}{detail}")

    def _problem_extensions(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "action": self.action,
            "issues": list(self.issues),
        }


class ReputationLookupError(ElectorateError):
    """Raised when the reputation service cannot answer a lookup.

    Registration is refused rather than classifying the agent on
    missing data.
    """

    problem_type = "urn:electorate:reputation:unavailable"
    title = "Reputation Service Unavailable"
    status = 502

    def __init__(self, agent_id: str, reason: str) -> None:
        self.agent_id = agent_id
        self.reason = reason
        super().__init__(f"Reputation lookup failed for {agent_id}: {reason}")

    def _problem_extensions(self) -> dict[str, Any]:
        return {"agent_id": self.agent_id}
