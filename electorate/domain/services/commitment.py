"""Commitment hashing for the commit-reveal protocol.

A voter commits to ``SHA-256(canonical_serialization(ballot) || nonce)``
during the sealed phase and later reveals the ballot and nonce. Anyone can
recompute the hash from the audit trail.

Canonical serialization: JSON, keys sorted, compact separators
(``,`` and ``:``), UTF-8 with non-ASCII characters kept as-is, absent
optional fields omitted. The nonce is appended as its hex text.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import secrets

from electorate.domain.models.ballot import BallotPayload

NONCE_BYTES: int = 32  # 256-bit nonce, 64 hex characters


def generate_nonce() -> str:
    """Mint a fresh 256-bit nonce as lowercase hex."""
    return secrets.token_hex(NONCE_BYTES)


def canonical_serialization(payload: BallotPayload) -> bytes:
    """Serialize a ballot to the exact bytes that are hashed."""
    return json.dumps(
        payload.to_dict(),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def compute_commitment_hash(payload: BallotPayload, nonce: str) -> str:
    """Compute the commitment hash for a ballot and nonce.

    Args:
        payload: The ballot being committed to.
        nonce: The evaluation nonce issued to the voter.

    Returns:
        64-character lowercase hex SHA-256 digest.
    """
    digest = hashlib.sha256()
    digest.update(canonical_serialization(payload))
    digest.update(nonce.encode("utf-8"))
    return digest.hexdigest()


def verify_commitment(payload: BallotPayload, nonce: str, expected_hash: str) -> bool:
    """Check a reveal against a stored commitment hash.

    Comparison is constant-time and case-insensitive on the stored hash.
    """
    computed = compute_commitment_hash(payload, nonce)
    return hmac.compare_digest(computed, expected_hash.lower())
