"""Domain models for Electorate."""

from electorate.domain.models.agent import (
    ActivitySignals,
    Agent,
    VerificationClaim,
    VerificationMethod,
    VoterTier,
)
from electorate.domain.models.ballot import (
    BallotPayload,
    EvalNonce,
    Vote,
    VoteCommitment,
    is_hex_256,
)
from electorate.domain.models.candidate import (
    Candidate,
    CandidateStatus,
    Endorsement,
    Platform,
    ballot_roster,
    ordered_roster,
    tally_roster,
)
from electorate.domain.models.election import (
    SINGLE_TIER_PLAN,
    TWO_TIER_PLAN,
    Election,
    Operation,
    PhaseKind,
    PhasePlan,
    PhaseSpec,
    PhaseTransition,
    PhaseWindow,
    Stage,
    single_tier_plan,
    two_tier_plan,
)
from electorate.domain.models.eligibility import (
    CandidateRequirements,
    EligibilityResult,
    VoterRequirements,
)
from electorate.domain.models.tally import (
    CandidateStanding,
    PrimaryStanding,
    PrimaryTallyResult,
    RankedBallot,
    RosterEntry,
    TallyOptions,
    TallyRecord,
    TallyResult,
    TallyRound,
)

__all__: list[str] = [
    "ActivitySignals",
    "Agent",
    "BallotPayload",
    "Candidate",
    "CandidateRequirements",
    "CandidateStanding",
    "CandidateStatus",
    "Election",
    "EligibilityResult",
    "Endorsement",
    "EvalNonce",
    "Operation",
    "PhaseKind",
    "PhasePlan",
    "PhaseSpec",
    "PhaseTransition",
    "PhaseWindow",
    "Platform",
    "PrimaryStanding",
    "PrimaryTallyResult",
    "RankedBallot",
    "RosterEntry",
    "SINGLE_TIER_PLAN",
    "Stage",
    "TWO_TIER_PLAN",
    "TallyOptions",
    "TallyRecord",
    "TallyResult",
    "TallyRound",
    "VerificationClaim",
    "VerificationMethod",
    "Vote",
    "VoteCommitment",
    "VoterRequirements",
    "VoterTier",
    "ballot_roster",
    "is_hex_256",
    "ordered_roster",
    "single_tier_plan",
    "tally_roster",
    "two_tier_plan",
]
