"""Ports (interfaces) for the application layer.

Adapters in ``electorate.infrastructure`` implement these protocols.
"""

from electorate.application.ports.agent_repository import AgentRepositoryProtocol
from electorate.application.ports.ballot_repository import BallotRepositoryProtocol
from electorate.application.ports.candidate_repository import (
    CandidateRepositoryProtocol,
)
from electorate.application.ports.election_repository import (
    ElectionRepositoryProtocol,
)
from electorate.application.ports.reputation_lookup import (
    ReputationLookupProtocol,
    ReputationProfile,
)
from electorate.application.ports.time_authority import TimeAuthorityProtocol

__all__: list[str] = [
    "AgentRepositoryProtocol",
    "BallotRepositoryProtocol",
    "CandidateRepositoryProtocol",
    "ElectionRepositoryProtocol",
    "ReputationLookupProtocol",
    "ReputationProfile",
    "TimeAuthorityProtocol",
]
