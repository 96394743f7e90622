"""Boundary request models for the application layer."""

from electorate.application.dtos.requests import (
    BallotPayloadRequest,
    CommitRequest,
    PlatformRequest,
    RevealRequest,
    VerificationRequest,
)

__all__: list[str] = [
    "BallotPayloadRequest",
    "CommitRequest",
    "PlatformRequest",
    "RevealRequest",
    "VerificationRequest",
]
