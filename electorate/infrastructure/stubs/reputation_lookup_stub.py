"""In-memory stub for ReputationLookupProtocol."""

from __future__ import annotations

from electorate.application.ports.reputation_lookup import ReputationProfile
from electorate.domain.errors import ReputationLookupError
from electorate.domain.models.agent import ActivitySignals


class ReputationLookupStub:
    """Serves profiles registered with ``set_profile``.

    Unknown agents get ``ReputationProfile.missing``. ``fail_with`` makes
    every lookup raise, to exercise service-unavailable paths.
    """

    def __init__(self) -> None:
        self._profiles: dict[str, ReputationProfile] = {}
        self._failure: str | None = None
        self.lookups: list[str] = []

    def set_profile(
        self,
        agent_id: str,
        signals: ActivitySignals,
        display_name: str | None = None,
    ) -> None:
        self._profiles[agent_id] = ReputationProfile(
            agent_id=agent_id,
            exists=True,
            display_name=display_name,
            signals=signals,
        )

    def fail_with(self, reason: str | None) -> None:
        """Make lookups raise ReputationLookupError; None restores them."""
        self._failure = reason

    async def lookup(self, agent_id: str) -> ReputationProfile:
        self.lookups.append(agent_id)
        if self._failure is not None:
            raise ReputationLookupError(agent_id, self._failure)
        return self._profiles.get(agent_id, ReputationProfile.missing(agent_id))
