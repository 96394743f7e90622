"""Domain errors for Electorate.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from ElectorateError.
"""

from electorate.domain.errors.candidacy import (
    CandidacyError,
    CandidateNotFoundError,
    DuplicateCandidacyError,
    DuplicateEndorsementError,
    SelfEndorsementError,
)
from electorate.domain.errors.commitment import (
    AlreadyRevealedError,
    CommitRevealError,
    DuplicateCommitmentError,
    HashMismatchError,
    InvalidCommitmentHashError,
    InvalidNonceError,
    NotCommittedError,
    UnknownCandidateError,
)
from electorate.domain.errors.phase import (
    ActiveElectionExistsError,
    ElectionNotFoundError,
    InvalidTransitionError,
    PhaseViolationError,
)
from electorate.domain.errors.registry import (
    AgentNotFoundError,
    IneligibleAgentError,
    ReputationLookupError,
)
from electorate.domain.errors.tally import NoCandidatesError, NoVotesError
from electorate.domain.exceptions import ElectorateError

__all__: list[str] = [
    "ActiveElectionExistsError",
    "AgentNotFoundError",
    "AlreadyRevealedError",
    "CandidacyError",
    "CandidateNotFoundError",
    "CommitRevealError",
    "DuplicateCandidacyError",
    "DuplicateCommitmentError",
    "DuplicateEndorsementError",
    "ElectionNotFoundError",
    "ElectorateError",
    "HashMismatchError",
    "IneligibleAgentError",
    "InvalidCommitmentHashError",
    "InvalidNonceError",
    "InvalidTransitionError",
    "NoCandidatesError",
    "NoVotesError",
    "NotCommittedError",
    "PhaseViolationError",
    "ReputationLookupError",
    "SelfEndorsementError",
    "UnknownCandidateError",
]
