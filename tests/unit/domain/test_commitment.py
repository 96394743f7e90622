"""Unit tests for commitment hashing."""

from __future__ import annotations

import hashlib

import pytest

from electorate.domain.models.ballot import BallotPayload, is_hex_256
from electorate.domain.services.commitment import (
    canonical_serialization,
    compute_commitment_hash,
    generate_nonce,
    verify_commitment,
)

NONCE = "ab" * 32


class TestCanonicalSerialization:
    """Tests for the bytes that are hashed."""

    def test_keys_sorted_and_compact(self) -> None:
        ballot = BallotPayload(first_choice="alice", second_choice="bob")

        assert canonical_serialization(ballot) == (
            b'{"first_choice":"alice","second_choice":"bob"}'
        )

    def test_absent_choices_are_omitted(self) -> None:
        ballot = BallotPayload(first_choice="alice", third_choice="carol")

        assert b"second_choice" not in canonical_serialization(ballot)

    def test_rationale_is_included(self) -> None:
        ballot = BallotPayload(first_choice="alice", rationale="best plan")

        assert canonical_serialization(ballot) == (
            b'{"first_choice":"alice","rationale":"best plan"}'
        )

    def test_non_ascii_kept_as_utf8(self) -> None:
        ballot = BallotPayload(first_choice="alice", rationale="très bien")

        assert "très".encode("utf-8") in canonical_serialization(ballot)


class TestCommitmentHash:
    """Tests for compute_commitment_hash and verify_commitment."""

    def test_hash_matches_manual_sha256(self) -> None:
        ballot = BallotPayload(first_choice="alice")
        expected = hashlib.sha256(
            b'{"first_choice":"alice"}' + NONCE.encode("utf-8")
        ).hexdigest()

        assert compute_commitment_hash(ballot, NONCE) == expected

    def test_hash_is_64_lowercase_hex(self) -> None:
        digest = compute_commitment_hash(BallotPayload(first_choice="alice"), NONCE)

        assert is_hex_256(digest)

    def test_verify_accepts_matching_reveal(self) -> None:
        ballot = BallotPayload(first_choice="alice", second_choice="bob")
        digest = compute_commitment_hash(ballot, NONCE)

        assert verify_commitment(ballot, NONCE, digest) is True

    def test_verify_accepts_uppercase_stored_hash(self) -> None:
        ballot = BallotPayload(first_choice="alice")
        digest = compute_commitment_hash(ballot, NONCE).upper()

        assert verify_commitment(ballot, NONCE, digest) is True

    def test_verify_rejects_other_nonce(self) -> None:
        ballot = BallotPayload(first_choice="alice")
        digest = compute_commitment_hash(ballot, NONCE)

        assert verify_commitment(ballot, "cd" * 32, digest) is False

    def test_verify_rejects_changed_ballot(self) -> None:
        digest = compute_commitment_hash(BallotPayload(first_choice="alice"), NONCE)

        assert verify_commitment(BallotPayload(first_choice="bob"), NONCE, digest) is False

    def test_verify_rejects_changed_rationale(self) -> None:
        committed = BallotPayload(first_choice="alice", rationale="a")
        digest = compute_commitment_hash(committed, NONCE)
        revealed = BallotPayload(first_choice="alice", rationale="b")

        assert verify_commitment(revealed, NONCE, digest) is False


class TestNonce:
    """Tests for nonce generation."""

    def test_nonce_is_256_bit_hex(self) -> None:
        assert is_hex_256(generate_nonce())

    def test_nonces_are_unique(self) -> None:
        assert len({generate_nonce() for _ in range(100)}) == 100


class TestBallotPayload:
    """Tests for ballot validation."""

    def test_first_choice_required(self) -> None:
        with pytest.raises(ValueError, match="first_choice"):
            BallotPayload(first_choice="")

    def test_choices_skip_absent_entries(self) -> None:
        ballot = BallotPayload(first_choice="alice", third_choice="carol")

        assert ballot.choices == ("alice", "carol")
