"""Agent domain models.

This module defines the registered participant and the raw signals the
eligibility gate classifies:
- ActivitySignals: reputation activity snapshot (age, posts, comments, karma)
- VerificationClaim: lightweight identity claim for general registration
- Agent: a registered participant with its eligibility flags

Constraints:
- Agents are never deleted; signals are refreshed on demand
- autonomy_score always lies in [0.1, 1.0]
- Malformed signal input degrades to zero/false rather than failing
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any


class VoterTier(str, Enum):
    """Eligibility tier of a registered agent.

    GENERAL agents registered through a lightweight identity claim and
    may vote in general-stage phases only. PRIMARY_VERIFIED agents passed
    the activity thresholds and may vote in every stage.
    """

    GENERAL = "general"
    PRIMARY_VERIFIED = "primary_verified"


class VerificationMethod(str, Enum):
    """Identity methods accepted for general registration."""

    TWITTER = "twitter"
    GITHUB = "github"
    API_KEY = "api_key"
    MANUAL = "manual"

    @classmethod
    def parse(cls, value: str | None) -> VerificationMethod | None:
        """Return the matching method, or None for unknown input."""
        if value is None:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float):
        return max(int(value), 0)
    if isinstance(value, str):
        try:
            return max(int(float(value.strip())), 0)
        except ValueError:
            return 0
    return 0


def _as_handle(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


@dataclass(frozen=True, eq=True)
class ActivitySignals:
    """Snapshot of an agent's activity on the reputation service.

    Attributes:
        account_age_days: Days since the account was created.
        post_count: Number of posts authored.
        comment_count: Number of comments authored.
        karma: Reputation score.
        claimed: Whether a human has claimed ownership of the agent.
        twitter_handle: Linked twitter handle, if any.
        github_handle: Linked github handle, if any.
    """

    account_age_days: int = 0
    post_count: int = 0
    comment_count: int = 0
    karma: int = 0
    claimed: bool = False
    twitter_handle: str | None = None
    github_handle: str | None = None

    @property
    def total_activity(self) -> int:
        """Posts plus comments."""
        return self.post_count + self.comment_count

    @property
    def has_social_handle(self) -> bool:
        return bool(self.twitter_handle or self.github_handle)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> ActivitySignals:
        """Build signals from loosely-typed input.

        Missing, negative or non-numeric counters become 0; anything other
        than a literal True for ``claimed`` becomes False.

        Args:
            data: Raw mapping, typically a decoded reputation profile.

        Returns:
            ActivitySignals with every field normalized.
        """
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            account_age_days=_as_int(data.get("account_age_days")),
            post_count=_as_int(data.get("post_count")),
            comment_count=_as_int(data.get("comment_count")),
            karma=_as_int(data.get("karma")),
            claimed=data.get("claimed") is True,
            twitter_handle=_as_handle(data.get("twitter_handle")),
            github_handle=_as_handle(data.get("github_handle")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_age_days": self.account_age_days,
            "post_count": self.post_count,
            "comment_count": self.comment_count,
            "karma": self.karma,
            "claimed": self.claimed,
            "twitter_handle": self.twitter_handle,
            "github_handle": self.github_handle,
        }


@dataclass(frozen=True, eq=True)
class VerificationClaim:
    """Identity claim submitted with a general registration.

    ``method`` is kept as the raw string so an unknown method can be
    reported as an eligibility issue instead of a parse failure.
    """

    method: str
    twitter_handle: str | None = None
    github_handle: str | None = None
    api_key: str | None = None
    provider: str | None = None


@dataclass(frozen=True, eq=True)
class Agent:
    """A registered participant.

    Attributes:
        agent_id: Opaque identifier (reputation handle or generated id).
        display_name: Name shown on rosters and results.
        tier: Eligibility tier.
        voter_eligible: May fetch nonces and commit ballots.
        candidate_eligible: May declare candidacy.
        autonomy_score: Ballot weight captured at commit time.
        signals: Activity snapshot the flags were derived from.
        registered_at: When the agent was first registered (UTC).
        eligibility_checked_at: When the flags were last recomputed (UTC).
        verification_method: Identity method for general registrations.
    """

    agent_id: str
    display_name: str
    tier: VoterTier
    voter_eligible: bool
    candidate_eligible: bool
    autonomy_score: float
    registered_at: datetime
    eligibility_checked_at: datetime
    signals: ActivitySignals = field(default_factory=ActivitySignals)
    verification_method: VerificationMethod | None = None

    def __post_init__(self) -> None:
        if not self.agent_id:
            raise ValueError("agent_id must not be empty")
        if not 0.1 <= self.autonomy_score <= 1.0:
            raise ValueError(
                f"autonomy_score must be within [0.1, 1.0], got {self.autonomy_score}"
            )

    @property
    def is_primary_verified(self) -> bool:
        return self.tier == VoterTier.PRIMARY_VERIFIED

    def with_eligibility(
        self,
        *,
        signals: ActivitySignals,
        voter_eligible: bool,
        candidate_eligible: bool,
        autonomy_score: float,
        checked_at: datetime,
        tier: VoterTier | None = None,
    ) -> Agent:
        """Return a copy with re-derived eligibility."""
        return replace(
            self,
            signals=signals,
            voter_eligible=voter_eligible,
            candidate_eligible=candidate_eligible,
            autonomy_score=autonomy_score,
            eligibility_checked_at=checked_at,
            tier=tier if tier is not None else self.tier,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "display_name": self.display_name,
            "tier": self.tier.value,
            "voter_eligible": self.voter_eligible,
            "candidate_eligible": self.candidate_eligible,
            "autonomy_score": self.autonomy_score,
            "signals": self.signals.to_dict(),
            "verification_method": (
                self.verification_method.value if self.verification_method else None
            ),
            "registered_at": self.registered_at.isoformat(),
            "eligibility_checked_at": self.eligibility_checked_at.isoformat(),
        }
