"""Reputation service adapters."""

from electorate.infrastructure.adapters.reputation.http_reputation_lookup import (
    HttpReputationLookup,
    profile_from_payload,
)

__all__: list[str] = ["HttpReputationLookup", "profile_from_payload"]
