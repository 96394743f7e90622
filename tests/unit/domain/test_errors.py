"""Unit tests for the domain error hierarchy and problem details."""

from __future__ import annotations

from uuid import uuid4

import pytest

from electorate.domain.errors import (
    ActiveElectionExistsError,
    AgentNotFoundError,
    AlreadyRevealedError,
    CandidacyError,
    CandidateNotFoundError,
    CommitRevealError,
    DuplicateCandidacyError,
    DuplicateCommitmentError,
    DuplicateEndorsementError,
    ElectionNotFoundError,
    ElectorateError,
    HashMismatchError,
    IneligibleAgentError,
    InvalidCommitmentHashError,
    InvalidNonceError,
    InvalidTransitionError,
    NoCandidatesError,
    NoVotesError,
    NotCommittedError,
    PhaseViolationError,
    ReputationLookupError,
    SelfEndorsementError,
    UnknownCandidateError,
)


class TestHierarchy:
    """Every rejection is catchable as ElectorateError."""

    @pytest.mark.parametrize(
        "error_class",
        [
            ActiveElectionExistsError,
            AgentNotFoundError,
            CandidacyError,
            CommitRevealError,
            ElectionNotFoundError,
            IneligibleAgentError,
            InvalidTransitionError,
            NoCandidatesError,
            NoVotesError,
            PhaseViolationError,
            ReputationLookupError,
        ],
    )
    def test_inherits_from_electorate_error(self, error_class: type) -> None:
        assert issubclass(error_class, ElectorateError)

    @pytest.mark.parametrize(
        "error_class",
        [
            AlreadyRevealedError,
            DuplicateCommitmentError,
            HashMismatchError,
            InvalidCommitmentHashError,
            InvalidNonceError,
            NotCommittedError,
            UnknownCandidateError,
        ],
    )
    def test_ballot_errors_are_commit_reveal_errors(self, error_class: type) -> None:
        assert issubclass(error_class, CommitRevealError)

    @pytest.mark.parametrize(
        "error_class",
        [
            CandidateNotFoundError,
            DuplicateCandidacyError,
            DuplicateEndorsementError,
            SelfEndorsementError,
        ],
    )
    def test_roster_errors_are_candidacy_errors(self, error_class: type) -> None:
        assert issubclass(error_class, CandidacyError)


class TestPhaseViolationError:
    def test_message_names_operation_and_allowed_phases(self) -> None:
        error = PhaseViolationError(
            election_id=uuid4(),
            phase="campaign",
            operation="commit",
            allowed_phases=("sealed", "voting"),
        )

        assert "commit" in str(error)
        assert "campaign" in str(error)
        assert error.allowed_phases == ("sealed", "voting")

    def test_problem_details(self) -> None:
        election_id = uuid4()
        error = PhaseViolationError(election_id, "campaign", "commit", ("sealed",))

        problem = error.to_rfc7807_dict()

        assert problem["status"] == 409
        assert problem["type"] == "urn:electorate:phase:violation"
        assert problem["election_id"] == str(election_id)
        assert problem["allowed_phases"] == ["sealed"]


class TestHashMismatchError:
    def test_message_does_not_say_which_part_failed(self) -> None:
        """A failed reveal never reveals whether the ballot or nonce was wrong."""
        message = str(HashMismatchError()).lower()

        assert "nonce" not in message
        assert "ballot" not in message


class TestIneligibleAgentError:
    def test_issues_listed(self) -> None:
        error = IneligibleAgentError("a1", "vote", ["Karma: 3/100"])

        assert error.issues == ("Karma: 3/100",)
        assert "Karma: 3/100" in str(error)
        assert "vote" in str(error)


class TestStatusCodes:
    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (CandidateNotFoundError(uuid4()), 404),
            (ElectionNotFoundError(uuid4()), 404),
            (DuplicateCommitmentError(uuid4(), "a1"), 409),
            (AlreadyRevealedError(uuid4(), "a1"), 409),
            (InvalidNonceError(uuid4(), "a1"), 400),
        ],
    )
    def test_status(self, error: ElectorateError, status: int) -> None:
        assert error.to_dict()["status"] == status
