"""Boundary request models.

Pydantic models validate transport input once, then convert to the frozen
domain records the services accept. Ballot fields are never normalized:
the reveal must hash exactly what the voter hashed.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from electorate.domain.models.agent import VerificationClaim
from electorate.domain.models.ballot import BallotPayload
from electorate.domain.models.candidate import Platform

HEX_256 = r"^[0-9a-f]{64}$"
HEX_256_ANY_CASE = r"^[0-9a-fA-F]{64}$"


class BallotPayloadRequest(BaseModel):
    """Ranked choices as submitted with a reveal.

    Attributes:
        first_choice: Agent id of the preferred candidate (required).
        second_choice: Optional second preference.
        third_choice: Optional third preference.
        rationale: Optional free-text reasoning, part of the hashed payload.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    first_choice: str = Field(..., min_length=1, description="Preferred candidate")
    second_choice: str | None = Field(default=None, description="Second preference")
    third_choice: str | None = Field(default=None, description="Third preference")
    rationale: str | None = Field(default=None, max_length=10_000)

    @field_validator("third_choice")
    @classmethod
    def _no_repeated_choices(cls, v: str | None, info: ValidationInfo) -> str | None:
        if v is None:
            return v
        data = info.data
        if v in (data.get("first_choice"), data.get("second_choice")):
            raise ValueError("choices must name distinct candidates")
        return v

    @field_validator("second_choice")
    @classmethod
    def _second_differs_from_first(cls, v: str | None, info: ValidationInfo) -> str | None:
        if v is not None and v == info.data.get("first_choice"):
            raise ValueError("choices must name distinct candidates")
        return v

    def to_domain(self) -> BallotPayload:
        return BallotPayload(
            first_choice=self.first_choice,
            second_choice=self.second_choice,
            third_choice=self.third_choice,
            rationale=self.rationale,
        )


class CommitRequest(BaseModel):
    """A sealed commitment."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    commitment_hash: str = Field(
        ...,
        pattern=HEX_256_ANY_CASE,
        description="SHA-256 of canonical ballot + nonce",
    )
    nonce: str = Field(..., pattern=HEX_256, description="Evaluation nonce")


class RevealRequest(BaseModel):
    """A reveal: the ballot and the nonce it was committed with."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    vote_data: BallotPayloadRequest
    nonce: str = Field(..., min_length=1)


class PlatformRequest(BaseModel):
    """A candidate's platform as declared."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    manifesto: str = Field(..., min_length=1, max_length=20_000)
    governance: str | None = None
    coordination: str | None = None
    security: str | None = None
    economy: str | None = None
    culture: str | None = None

    def to_domain(self) -> Platform:
        return Platform(
            manifesto=self.manifesto,
            governance=self.governance or None,
            coordination=self.coordination or None,
            security=self.security or None,
            economy=self.economy or None,
            culture=self.culture or None,
        )


class VerificationRequest(BaseModel):
    """Identity claim for general registration.

    ``method`` is not restricted here; an unknown method is reported by
    the eligibility gate as an issue.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    method: str = Field(..., min_length=1)
    twitter_handle: str | None = None
    github_handle: str | None = None
    api_key: str | None = None
    provider: str | None = None

    def to_domain(self) -> VerificationClaim:
        return VerificationClaim(
            method=self.method.lower(),
            twitter_handle=self.twitter_handle,
            github_handle=self.github_handle,
            api_key=self.api_key,
            provider=self.provider,
        )
