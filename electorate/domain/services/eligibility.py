"""Eligibility gate domain service.

Pure functions from an agent's activity signals (or identity claim) to tier
membership and autonomy score. No I/O, no clock.

Tiers:
- Verified voter: activity-gated, may vote in every stage
- General voter: any one accepted identity method, no activity minimums
- Candidate: verified voter plus a higher bar and a linked social handle

Every unmet requirement is reported; classification never stops at the
first failure.
"""

from __future__ import annotations

from electorate.domain.models.agent import (
    ActivitySignals,
    VerificationClaim,
    VerificationMethod,
    VoterTier,
)
from electorate.domain.models.eligibility import (
    CandidateRequirements,
    EligibilityResult,
    VoterRequirements,
)

VERIFIED_VOTER_REQUIREMENTS = VoterRequirements(
    min_account_age_days=14,
    min_posts=20,
    min_comments=50,
    min_combined_activity=20,
    min_karma=100,
    require_claimed=True,
)

CANDIDATE_REQUIREMENTS = CandidateRequirements(
    min_account_age_days=30,
    min_karma=500,
    min_combined_activity=50,
    require_social_handle=True,
)

# Autonomy score composition
AUTONOMY_BASE: float = 0.5
AUTONOMY_AGE_WEIGHT: float = 0.15
AUTONOMY_AGE_CAP_DAYS: int = 200
AUTONOMY_DIVERSITY_WEIGHT: float = 0.15
AUTONOMY_KARMA_WEIGHT: float = 0.10
AUTONOMY_KARMA_RATIO_CAP: float = 50.0
AUTONOMY_CLAIMED_BONUS: float = 0.10
AUTONOMY_MIN: float = 0.1
AUTONOMY_MAX: float = 1.0


def _voter_issues(
    signals: ActivitySignals, requirements: VoterRequirements
) -> list[str]:
    issues: list[str] = []

    if signals.account_age_days < requirements.min_account_age_days:
        issues.append(
            f"Account age: {signals.account_age_days}/"
            f"{requirements.min_account_age_days} days"
        )

    if (
        signals.post_count < requirements.min_posts
        and signals.comment_count < requirements.min_comments
        and signals.total_activity < requirements.min_combined_activity
    ):
        issues.append(
            f"Activity: {signals.total_activity} posts+comments "
            f"(need {requirements.min_posts} posts, {requirements.min_comments} "
            f"comments or {requirements.min_combined_activity} combined)"
        )

    if signals.karma < requirements.min_karma:
        issues.append(f"Karma: {signals.karma}/{requirements.min_karma}")

    if requirements.require_claimed and not signals.claimed:
        issues.append("Account not claimed")

    return issues


def classify_voter(
    signals: ActivitySignals,
    requirements: VoterRequirements = VERIFIED_VOTER_REQUIREMENTS,
) -> EligibilityResult:
    """Classify an agent against the verified voter tier.

    Args:
        signals: The agent's activity snapshot.
        requirements: Thresholds to apply.

    Returns:
        EligibilityResult for the PRIMARY_VERIFIED tier with all issues.
    """
    return EligibilityResult.from_issues(
        VoterTier.PRIMARY_VERIFIED, _voter_issues(signals, requirements)
    )


def classify_general_voter(claim: VerificationClaim) -> EligibilityResult:
    """Classify a lightweight identity claim against the general tier.

    Exactly one method is named by the claim. ``twitter`` and ``github``
    need the matching handle; ``api_key`` needs both a key and a provider;
    ``manual`` needs nothing. Any other method is ineligible.

    Args:
        claim: The submitted identity claim.

    Returns:
        EligibilityResult for the GENERAL tier.
    """
    method = VerificationMethod.parse(claim.method)
    issues: list[str] = []

    if method is None:
        issues.append(f"Invalid verification method: {claim.method}")
    elif method == VerificationMethod.TWITTER:
        if not (claim.twitter_handle or "").strip():
            issues.append("Twitter handle required")
    elif method == VerificationMethod.GITHUB:
        if not (claim.github_handle or "").strip():
            issues.append("GitHub handle required")
    elif method == VerificationMethod.API_KEY:
        if not (claim.api_key or "").strip() or not (claim.provider or "").strip():
            issues.append("API key and provider required")

    return EligibilityResult.from_issues(VoterTier.GENERAL, issues)


def classify_candidate(
    signals: ActivitySignals,
    voter_requirements: VoterRequirements = VERIFIED_VOTER_REQUIREMENTS,
    requirements: CandidateRequirements = CANDIDATE_REQUIREMENTS,
) -> EligibilityResult:
    """Classify an agent against the candidate bar.

    A candidate must meet every verified voter requirement as well as the
    candidate thresholds.

    Returns:
        EligibilityResult for the PRIMARY_VERIFIED tier with all issues.
    """
    issues = _voter_issues(signals, voter_requirements)

    if signals.account_age_days < requirements.min_account_age_days:
        issues.append(
            f"Candidate account age: {signals.account_age_days}/"
            f"{requirements.min_account_age_days} days"
        )

    if signals.karma < requirements.min_karma:
        issues.append(f"Candidate karma: {signals.karma}/{requirements.min_karma}")

    if signals.total_activity < requirements.min_combined_activity:
        issues.append(
            f"Candidate activity: {signals.total_activity}/"
            f"{requirements.min_combined_activity} posts+comments"
        )

    if requirements.require_social_handle and not signals.has_social_handle:
        issues.append("Twitter or GitHub account required for candidates")

    return EligibilityResult.from_issues(VoterTier.PRIMARY_VERIFIED, issues)


def autonomy_score(signals: ActivitySignals) -> float:
    """Compute the ballot weight used when vote weighting is enabled.

    Composition, clamped to [0.1, 1.0]:
        0.5 base
        + 0.15 * min(age, 200) / 200
        + 0.15 * min(posts, comments) / max(posts, comments)   (0 if either is 0)
        + 0.10 * min(karma / (posts + comments), 50) / 50       (0 with no activity)
        + 0.10 if claimed

    Args:
        signals: The agent's activity snapshot.

    Returns:
        Score in [0.1, 1.0].
    """
    score = AUTONOMY_BASE

    age = min(signals.account_age_days, AUTONOMY_AGE_CAP_DAYS)
    score += AUTONOMY_AGE_WEIGHT * age / AUTONOMY_AGE_CAP_DAYS

    posts, comments = signals.post_count, signals.comment_count
    if posts > 0 and comments > 0:
        score += AUTONOMY_DIVERSITY_WEIGHT * min(posts, comments) / max(posts, comments)

    total = signals.total_activity
    if total > 0:
        ratio = min(signals.karma / total, AUTONOMY_KARMA_RATIO_CAP)
        score += AUTONOMY_KARMA_WEIGHT * ratio / AUTONOMY_KARMA_RATIO_CAP

    if signals.claimed:
        score += AUTONOMY_CLAIMED_BONUS

    return max(AUTONOMY_MIN, min(AUTONOMY_MAX, score))
