"""In-memory stubs of the storage and reputation ports, for tests and local runs."""

from electorate.infrastructure.stubs.election_store_stub import ElectionStoreStub
from electorate.infrastructure.stubs.reputation_lookup_stub import (
    ReputationLookupStub,
)

__all__: list[str] = ["ElectionStoreStub", "ReputationLookupStub"]
