"""Pure domain services: eligibility gate, commitment hashing, tally."""

from electorate.domain.services.commitment import (
    canonical_serialization,
    compute_commitment_hash,
    generate_nonce,
    verify_commitment,
)
from electorate.domain.services.eligibility import (
    autonomy_score,
    classify_candidate,
    classify_general_voter,
    classify_voter,
)
from electorate.domain.services.tally import tally, tally_primary

__all__: list[str] = [
    "autonomy_score",
    "canonical_serialization",
    "classify_candidate",
    "classify_general_voter",
    "classify_voter",
    "compute_commitment_hash",
    "generate_nonce",
    "tally",
    "tally_primary",
    "verify_commitment",
]
