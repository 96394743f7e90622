"""SQLAlchemy persistence adapters."""

from electorate.infrastructure.adapters.persistence.schema import metadata
from electorate.infrastructure.adapters.persistence.sql_election_store import (
    SqlElectionStore,
)
from electorate.infrastructure.adapters.persistence.views import (
    AgentRepositoryView,
    CandidateRepositoryView,
)

__all__: list[str] = [
    "AgentRepositoryView",
    "CandidateRepositoryView",
    "SqlElectionStore",
    "metadata",
]
