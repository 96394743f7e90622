"""Eligibility gate result and requirement records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from electorate.domain.models.agent import VoterTier


@dataclass(frozen=True, eq=True)
class VoterRequirements:
    """Activity thresholds for the verified voter tier.

    The activity rule is satisfied by any one of: enough posts, enough
    comments, or enough combined activity.
    """

    min_account_age_days: int
    min_posts: int
    min_comments: int
    min_combined_activity: int
    min_karma: int
    require_claimed: bool = True


@dataclass(frozen=True, eq=True)
class CandidateRequirements:
    """Thresholds a verified voter must additionally meet to run."""

    min_account_age_days: int
    min_karma: int
    min_combined_activity: int
    require_social_handle: bool = True


@dataclass(frozen=True, eq=True)
class EligibilityResult:
    """Outcome of one eligibility classification.

    Attributes:
        eligible: True when no requirement is unmet.
        tier: The tier the classification was made for.
        issues: Human-readable description of every unmet requirement.
    """

    eligible: bool
    tier: VoterTier
    issues: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_issues(cls, tier: VoterTier, issues: list[str]) -> EligibilityResult:
        return cls(eligible=not issues, tier=tier, issues=tuple(issues))

    def to_dict(self) -> dict[str, Any]:
        return {
            "eligible": self.eligible,
            "tier": self.tier.value,
            "issues": list(self.issues),
        }
