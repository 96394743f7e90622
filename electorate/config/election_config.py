"""Election timing, qualification and tally configuration.

This module defines the tunables of an election with environment variable
overrides for deployment.

Environment Variables:
- DECLARATION_DAYS: Declaration phase length (default: 10, min: 1, max: 60)
- CAMPAIGN_DAYS: Single-tier campaign length (default: 7, min: 1, max: 60)
- SEALED_DAYS: Sealed evaluation length (default: 2, min: 1, max: 30)
- VOTING_DAYS: Reveal window length (default: 1, min: 1, max: 30)
- TALLY_DAYS: Tally phase length (default: 2, min: 1, max: 30)
- PRIMARY_CAMPAIGN_DAYS: Primary campaign length (default: 7, min: 1, max: 60)
- PRIMARY_SEALED_DAYS: Primary sealed length (default: 2, min: 1, max: 30)
- PRIMARY_VOTING_DAYS: Primary reveal length (default: 1, min: 1, max: 30)
- ADVANCEMENT_DAYS: Primary results window (default: 1, min: 1, max: 30)
- GENERAL_CAMPAIGN_DAYS: General campaign length (default: 10, min: 1, max: 60)
- GENERAL_SEALED_DAYS: General sealed length (default: 2, min: 1, max: 30)
- GENERAL_VOTING_DAYS: General reveal length (default: 1, min: 1, max: 30)
- ENDORSEMENT_THRESHOLD: Endorsements to qualify (default: 25, min: 1, max: 1000)
- TOP_N_ADVANCE: Primary finishers advancing (default: 5, min: 1, max: 50)
- USE_VOTE_WEIGHTING: Weight ballots by autonomy score (default: false)
- REPUTATION_BASE_URL: Base URL of the reputation service
- REPUTATION_TIMEOUT_SECONDS: Reputation request timeout (default: 10, min: 1, max: 60)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from electorate.domain.models.election import (
    SINGLE_TIER_PLAN,
    TWO_TIER_PLAN,
    PhasePlan,
    single_tier_plan,
    two_tier_plan,
)


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_bool_env(key: str, default: bool) -> bool:
    value = os.environ.get(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _clamp(value: int, floor: int, ceiling: int) -> int:
    return max(floor, min(value, ceiling))


# =============================================================================
# Phase durations (days)
# =============================================================================

MIN_PHASE_DAYS = 1
MAX_LONG_PHASE_DAYS = 60  # declaration and campaigns
MAX_SHORT_PHASE_DAYS = 30  # sealed, voting, tally, advancement

DEFAULT_DECLARATION_DAYS = 10
DEFAULT_CAMPAIGN_DAYS = 7
DEFAULT_SEALED_DAYS = 2
DEFAULT_VOTING_DAYS = 1
DEFAULT_TALLY_DAYS = 2
DEFAULT_PRIMARY_CAMPAIGN_DAYS = 7
DEFAULT_ADVANCEMENT_DAYS = 1
DEFAULT_GENERAL_CAMPAIGN_DAYS = 10

# =============================================================================
# Qualification and advancement
# =============================================================================

DEFAULT_ENDORSEMENT_THRESHOLD = 25
MIN_ENDORSEMENT_THRESHOLD = 1
MAX_ENDORSEMENT_THRESHOLD = 1000

DEFAULT_TOP_N_ADVANCE = 5
MIN_TOP_N_ADVANCE = 1
MAX_TOP_N_ADVANCE = 50

# =============================================================================
# Reputation service
# =============================================================================

DEFAULT_REPUTATION_BASE_URL = "http://localhost:8001/api/v1"
DEFAULT_REPUTATION_TIMEOUT_SECONDS = 10
MIN_REPUTATION_TIMEOUT_SECONDS = 1
MAX_REPUTATION_TIMEOUT_SECONDS = 60


@dataclass(frozen=True)
class ElectionConfig:
    """Configuration for election scheduling, qualification and tallying.

    All values can be overridden via environment variables.

    Attributes:
        declaration_days: Declaration phase length, shared by both plans.
        campaign_days / sealed_days / voting_days / tally_days: Single-tier
            phase lengths. ``tally_days`` also sets the two-tier tally phase.
        primary_campaign_days / primary_sealed_days / primary_voting_days:
            Primary-stage phase lengths.
        advancement_days: How long primary results stand before the
            general campaign opens.
        general_campaign_days / general_sealed_days / general_voting_days:
            General-stage phase lengths of a two-tier election.
        endorsement_threshold: Endorsements that promote PENDING to QUALIFIED.
        top_n_advance: Primary finishers that reach the general stage.
        use_vote_weighting: Weight ballots by autonomy score.
        reputation_base_url: Base URL of the reputation service API.
        reputation_timeout_seconds: Per-request timeout for lookups.
    """

    declaration_days: int = DEFAULT_DECLARATION_DAYS
    campaign_days: int = DEFAULT_CAMPAIGN_DAYS
    sealed_days: int = DEFAULT_SEALED_DAYS
    voting_days: int = DEFAULT_VOTING_DAYS
    tally_days: int = DEFAULT_TALLY_DAYS
    primary_campaign_days: int = DEFAULT_PRIMARY_CAMPAIGN_DAYS
    primary_sealed_days: int = DEFAULT_SEALED_DAYS
    primary_voting_days: int = DEFAULT_VOTING_DAYS
    advancement_days: int = DEFAULT_ADVANCEMENT_DAYS
    general_campaign_days: int = DEFAULT_GENERAL_CAMPAIGN_DAYS
    general_sealed_days: int = DEFAULT_SEALED_DAYS
    general_voting_days: int = DEFAULT_VOTING_DAYS
    endorsement_threshold: int = DEFAULT_ENDORSEMENT_THRESHOLD
    top_n_advance: int = DEFAULT_TOP_N_ADVANCE
    use_vote_weighting: bool = False
    reputation_base_url: str = DEFAULT_REPUTATION_BASE_URL
    reputation_timeout_seconds: int = DEFAULT_REPUTATION_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        """Validate configuration values."""
        long_phases = {
            "declaration_days": self.declaration_days,
            "campaign_days": self.campaign_days,
            "primary_campaign_days": self.primary_campaign_days,
            "general_campaign_days": self.general_campaign_days,
        }
        short_phases = {
            "sealed_days": self.sealed_days,
            "voting_days": self.voting_days,
            "tally_days": self.tally_days,
            "primary_sealed_days": self.primary_sealed_days,
            "primary_voting_days": self.primary_voting_days,
            "advancement_days": self.advancement_days,
            "general_sealed_days": self.general_sealed_days,
            "general_voting_days": self.general_voting_days,
        }
        for name, value in long_phases.items():
            if not MIN_PHASE_DAYS <= value <= MAX_LONG_PHASE_DAYS:
                raise ValueError(
                    f"{name} must be between {MIN_PHASE_DAYS} and "
                    f"{MAX_LONG_PHASE_DAYS}, got {value}"
                )
        for name, value in short_phases.items():
            if not MIN_PHASE_DAYS <= value <= MAX_SHORT_PHASE_DAYS:
                raise ValueError(
                    f"{name} must be between {MIN_PHASE_DAYS} and "
                    f"{MAX_SHORT_PHASE_DAYS}, got {value}"
                )
        if (
            not MIN_ENDORSEMENT_THRESHOLD
            <= self.endorsement_threshold
            <= MAX_ENDORSEMENT_THRESHOLD
        ):
            raise ValueError(
                f"endorsement_threshold must be between {MIN_ENDORSEMENT_THRESHOLD} "
                f"and {MAX_ENDORSEMENT_THRESHOLD}, got {self.endorsement_threshold}"
            )
        if not MIN_TOP_N_ADVANCE <= self.top_n_advance <= MAX_TOP_N_ADVANCE:
            raise ValueError(
                f"top_n_advance must be between {MIN_TOP_N_ADVANCE} "
                f"and {MAX_TOP_N_ADVANCE}, got {self.top_n_advance}"
            )
        if not (
            MIN_REPUTATION_TIMEOUT_SECONDS
            <= self.reputation_timeout_seconds
            <= MAX_REPUTATION_TIMEOUT_SECONDS
        ):
            raise ValueError(
                "reputation_timeout_seconds must be between "
                f"{MIN_REPUTATION_TIMEOUT_SECONDS} and "
                f"{MAX_REPUTATION_TIMEOUT_SECONDS}, got {self.reputation_timeout_seconds}"
            )
        if not self.reputation_base_url:
            raise ValueError("reputation_base_url must not be empty")

    def phase_plan(self, plan_name: str) -> PhasePlan:
        """Build the named phase plan with the configured durations.

        Args:
            plan_name: ``single_tier`` or ``two_tier``.

        Raises:
            ValueError: If the plan name is unknown.
        """
        if plan_name == SINGLE_TIER_PLAN:
            return single_tier_plan(
                declaration_days=self.declaration_days,
                campaign_days=self.campaign_days,
                sealed_days=self.sealed_days,
                voting_days=self.voting_days,
                tally_days=self.tally_days,
            )
        if plan_name == TWO_TIER_PLAN:
            return two_tier_plan(
                declaration_days=self.declaration_days,
                primary_campaign_days=self.primary_campaign_days,
                primary_sealed_days=self.primary_sealed_days,
                primary_voting_days=self.primary_voting_days,
                advancement_days=self.advancement_days,
                general_campaign_days=self.general_campaign_days,
                general_sealed_days=self.general_sealed_days,
                general_voting_days=self.general_voting_days,
                tally_days=self.tally_days,
            )
        raise ValueError(f"Unknown phase plan: {plan_name}")

    @classmethod
    def from_environment(cls) -> ElectionConfig:
        """Create config from environment variables with defaults.

        Out-of-range values are clamped into range rather than rejected.

        Returns:
            ElectionConfig with values from environment or defaults.
        """

        def long_phase(key: str, default: int) -> int:
            return _clamp(_get_int_env(key, default), MIN_PHASE_DAYS, MAX_LONG_PHASE_DAYS)

        def short_phase(key: str, default: int) -> int:
            return _clamp(
                _get_int_env(key, default), MIN_PHASE_DAYS, MAX_SHORT_PHASE_DAYS
            )

        return cls(
            declaration_days=long_phase("DECLARATION_DAYS", DEFAULT_DECLARATION_DAYS),
            campaign_days=long_phase("CAMPAIGN_DAYS", DEFAULT_CAMPAIGN_DAYS),
            sealed_days=short_phase("SEALED_DAYS", DEFAULT_SEALED_DAYS),
            voting_days=short_phase("VOTING_DAYS", DEFAULT_VOTING_DAYS),
            tally_days=short_phase("TALLY_DAYS", DEFAULT_TALLY_DAYS),
            primary_campaign_days=long_phase(
                "PRIMARY_CAMPAIGN_DAYS", DEFAULT_PRIMARY_CAMPAIGN_DAYS
            ),
            primary_sealed_days=short_phase("PRIMARY_SEALED_DAYS", DEFAULT_SEALED_DAYS),
            primary_voting_days=short_phase("PRIMARY_VOTING_DAYS", DEFAULT_VOTING_DAYS),
            advancement_days=short_phase("ADVANCEMENT_DAYS", DEFAULT_ADVANCEMENT_DAYS),
            general_campaign_days=long_phase(
                "GENERAL_CAMPAIGN_DAYS", DEFAULT_GENERAL_CAMPAIGN_DAYS
            ),
            general_sealed_days=short_phase("GENERAL_SEALED_DAYS", DEFAULT_SEALED_DAYS),
            general_voting_days=short_phase("GENERAL_VOTING_DAYS", DEFAULT_VOTING_DAYS),
            endorsement_threshold=_clamp(
                _get_int_env("ENDORSEMENT_THRESHOLD", DEFAULT_ENDORSEMENT_THRESHOLD),
                MIN_ENDORSEMENT_THRESHOLD,
                MAX_ENDORSEMENT_THRESHOLD,
            ),
            top_n_advance=_clamp(
                _get_int_env("TOP_N_ADVANCE", DEFAULT_TOP_N_ADVANCE),
                MIN_TOP_N_ADVANCE,
                MAX_TOP_N_ADVANCE,
            ),
            use_vote_weighting=_get_bool_env("USE_VOTE_WEIGHTING", False),
            reputation_base_url=(
                os.environ.get("REPUTATION_BASE_URL") or DEFAULT_REPUTATION_BASE_URL
            ).rstrip("/"),
            reputation_timeout_seconds=_clamp(
                _get_int_env(
                    "REPUTATION_TIMEOUT_SECONDS", DEFAULT_REPUTATION_TIMEOUT_SECONDS
                ),
                MIN_REPUTATION_TIMEOUT_SECONDS,
                MAX_REPUTATION_TIMEOUT_SECONDS,
            ),
        )


# Default production config
DEFAULT_ELECTION_CONFIG = ElectionConfig()

# Testing config: low qualification bar, small advancement pool
TEST_ELECTION_CONFIG = ElectionConfig(
    endorsement_threshold=2,
    top_n_advance=2,
)
