"""Unit tests for boundary request models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from electorate.application.dtos import (
    BallotPayloadRequest,
    CommitRequest,
    PlatformRequest,
    RevealRequest,
    VerificationRequest,
)
from electorate.domain.models.ballot import BallotPayload


class TestBallotPayloadRequest:
    def test_to_domain_keeps_fields_verbatim(self) -> None:
        request = BallotPayloadRequest(
            first_choice="alice", second_choice="bob", rationale="  spaced  "
        )

        assert request.to_domain() == BallotPayload(
            first_choice="alice", second_choice="bob", rationale="  spaced  "
        )

    def test_first_choice_required(self) -> None:
        with pytest.raises(ValidationError):
            BallotPayloadRequest(first_choice="")

    @pytest.mark.parametrize(
        "fields",
        [
            {"first_choice": "alice", "second_choice": "alice"},
            {"first_choice": "alice", "second_choice": "bob", "third_choice": "bob"},
            {"first_choice": "alice", "third_choice": "alice"},
        ],
    )
    def test_repeated_choice_rejected(self, fields: dict[str, str]) -> None:
        with pytest.raises(ValidationError, match="distinct"):
            BallotPayloadRequest(**fields)

    def test_unknown_field_rejected(self) -> None:
        with pytest.raises(ValidationError):
            BallotPayloadRequest(  # type: ignore[call-arg]
                first_choice="alice", fourth_choice="bob"
            )


class TestCommitRequest:
    def test_accepts_uppercase_hash(self) -> None:
        request = CommitRequest(commitment_hash="AB" * 32, nonce="cd" * 32)

        assert request.commitment_hash == "AB" * 32

    @pytest.mark.parametrize("digest", ["abc", "g" * 64, "a" * 65])
    def test_malformed_hash_rejected(self, digest: str) -> None:
        with pytest.raises(ValidationError):
            CommitRequest(commitment_hash=digest, nonce="cd" * 32)

    def test_nonce_must_be_hex(self) -> None:
        with pytest.raises(ValidationError):
            CommitRequest(commitment_hash="ab" * 32, nonce="not-a-nonce")


class TestRevealRequest:
    def test_nested_ballot(self) -> None:
        request = RevealRequest.model_validate(
            {"vote_data": {"first_choice": "alice"}, "nonce": "cd" * 32}
        )

        assert request.vote_data.to_domain().first_choice == "alice"


class TestPlatformRequest:
    def test_blank_positions_dropped(self) -> None:
        platform = PlatformRequest(manifesto=" Ship it ", governance="   ").to_domain()

        assert platform.manifesto == "Ship it"
        assert platform.governance is None

    def test_blank_manifesto_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PlatformRequest(manifesto="   ")


class TestVerificationRequest:
    def test_method_lowercased(self) -> None:
        claim = VerificationRequest(method=" GitHub ", github_handle="obs").to_domain()

        assert claim.method == "github"
        assert claim.github_handle == "obs"
