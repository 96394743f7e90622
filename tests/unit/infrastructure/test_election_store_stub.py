"""Unit tests for ElectionStoreStub storage guarantees."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest

from electorate.domain.errors import (
    ActiveElectionExistsError,
    AlreadyRevealedError,
    CandidateNotFoundError,
    DuplicateCandidacyError,
    DuplicateCommitmentError,
    InvalidNonceError,
)
from electorate.domain.models.ballot import EvalNonce, Vote, VoteCommitment
from electorate.domain.models.candidate import Candidate, CandidateStatus, Platform
from electorate.domain.models.election import (
    SINGLE_TIER_PLAN,
    Election,
    PhaseKind,
    PhaseTransition,
    Stage,
    single_tier_plan,
)
from electorate.infrastructure.stubs import ElectionStoreStub

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)
HASH = "a" * 64
NONCE = "b" * 64


def _election(phase: str = "declaration") -> Election:
    return Election(
        id=uuid4(),
        title="Council",
        plan_name=SINGLE_TIER_PLAN,
        phase=phase,
        schedule=single_tier_plan().build_schedule(NOW),
        top_n_advance=2,
        created_at=NOW,
    )


def _transition(election_id: UUID, from_phase: str, to_phase: str) -> PhaseTransition:
    return PhaseTransition(
        election_id=election_id,
        from_phase=from_phase,
        to_phase=to_phase,
        to_kind=PhaseKind.CAMPAIGN,
        stage=Stage.GENERAL,
        occurred_at=NOW,
    )


def _candidate(election_id: UUID, agent_id: str = "alice") -> Candidate:
    return Candidate(
        id=uuid4(),
        election_id=election_id,
        agent_id=agent_id,
        display_name=agent_id.title(),
        platform=Platform(manifesto="Ship it"),
        declared_at=NOW,
    )


def _commitment(election_id: UUID, nonce: str = NONCE) -> VoteCommitment:
    return VoteCommitment(
        id=uuid4(),
        election_id=election_id,
        agent_id="v1",
        stage="general",
        commitment_hash=HASH,
        eval_nonce=nonce,
        autonomy_score=0.5,
        committed_at=NOW,
    )


def _vote(commitment: VoteCommitment) -> Vote:
    return Vote(
        id=uuid4(),
        commitment_id=commitment.id,
        election_id=commitment.election_id,
        agent_id=commitment.agent_id,
        stage=commitment.stage,
        first_choice="alice",
        nonce=commitment.eval_nonce,
        autonomy_score=commitment.autonomy_score,
        revealed_at=NOW,
    )


async def _issue_nonce(store: ElectionStoreStub, election_id: UUID) -> EvalNonce:
    return await store.create_nonce(
        EvalNonce(
            election_id=election_id,
            agent_id="v1",
            stage="general",
            nonce=NONCE,
            issued_at=NOW,
        )
    )


@pytest.fixture
def store() -> ElectionStoreStub:
    return ElectionStoreStub()


class TestElections:
    """Election storage and compare-and-swap transitions."""

    @pytest.mark.asyncio
    async def test_one_active_election(self, store: ElectionStoreStub) -> None:
        first = _election()
        await store.create(first)

        with pytest.raises(ActiveElectionExistsError) as exc_info:
            await store.create(_election())

        assert exc_info.value.existing_election_id == first.id

    @pytest.mark.asyncio
    async def test_completed_election_does_not_block(
        self, store: ElectionStoreStub
    ) -> None:
        await store.create(_election(phase="complete"))
        active = _election()

        await store.create(active)

        assert await store.get_active() == active

    @pytest.mark.asyncio
    async def test_transition_applies_on_expected_phase(
        self, store: ElectionStoreStub
    ) -> None:
        election = _election()
        await store.create(election)

        applied = await store.apply_transition(
            _transition(election.id, "declaration", "campaign")
        )

        stored = await store.get(election.id)
        assert applied is True
        assert stored is not None
        assert stored.phase == "campaign"
        assert len(store.transition_log) == 1

    @pytest.mark.asyncio
    async def test_transition_from_stale_phase_rejected(
        self, store: ElectionStoreStub
    ) -> None:
        election = _election(phase="campaign")
        await store.create(election)

        applied = await store.apply_transition(
            _transition(election.id, "declaration", "campaign")
        )

        assert applied is False
        assert store.transition_log == []

    @pytest.mark.asyncio
    async def test_transition_for_unknown_election(
        self, store: ElectionStoreStub
    ) -> None:
        assert await store.apply_transition(
            _transition(uuid4(), "declaration", "campaign")
        ) is False


class TestCandidates:
    @pytest.mark.asyncio
    async def test_one_candidacy_per_agent(self, store: ElectionStoreStub) -> None:
        election_id = uuid4()
        first = _candidate(election_id)
        await store.add_candidate(first)

        with pytest.raises(DuplicateCandidacyError) as exc_info:
            await store.add_candidate(_candidate(election_id))

        assert exc_info.value.existing_candidate_id == first.id

    @pytest.mark.asyncio
    async def test_same_agent_in_another_election(
        self, store: ElectionStoreStub
    ) -> None:
        await store.add_candidate(_candidate(uuid4()))
        await store.add_candidate(_candidate(uuid4()))

    @pytest.mark.asyncio
    async def test_disqualify_unknown(self, store: ElectionStoreStub) -> None:
        with pytest.raises(CandidateNotFoundError):
            await store.disqualify(uuid4(), "Fraud")

    @pytest.mark.asyncio
    async def test_disqualify_keeps_candidate(self, store: ElectionStoreStub) -> None:
        candidate = _candidate(uuid4())
        await store.add_candidate(candidate)

        await store.disqualify(candidate.id, "Fraud")

        stored = await store.get_candidate(candidate.id)
        assert stored is not None
        assert stored.status == CandidateStatus.DISQUALIFIED


class TestBallots:
    """Nonce, commitment and reveal uniqueness."""

    @pytest.mark.asyncio
    async def test_nonce_issued_once(self, store: ElectionStoreStub) -> None:
        election_id = uuid4()
        first = await _issue_nonce(store, election_id)

        second = await store.create_nonce(
            EvalNonce(
                election_id=election_id,
                agent_id="v1",
                stage="general",
                nonce="c" * 64,
                issued_at=NOW,
            )
        )

        assert second == first

    @pytest.mark.asyncio
    async def test_commit_consumes_nonce(self, store: ElectionStoreStub) -> None:
        election_id = uuid4()
        await _issue_nonce(store, election_id)

        await store.commit(_commitment(election_id))

        nonce = await store.get_nonce(election_id, "v1", "general")
        assert nonce is not None
        assert nonce.used is True

    @pytest.mark.asyncio
    async def test_commit_without_nonce(self, store: ElectionStoreStub) -> None:
        with pytest.raises(InvalidNonceError):
            await store.commit(_commitment(uuid4()))

    @pytest.mark.asyncio
    async def test_commit_with_other_nonce(self, store: ElectionStoreStub) -> None:
        election_id = uuid4()
        await _issue_nonce(store, election_id)

        with pytest.raises(InvalidNonceError):
            await store.commit(_commitment(election_id, nonce="c" * 64))

    @pytest.mark.asyncio
    async def test_second_commit_is_duplicate(self, store: ElectionStoreStub) -> None:
        election_id = uuid4()
        await _issue_nonce(store, election_id)
        first = await store.commit(_commitment(election_id))

        with pytest.raises(DuplicateCommitmentError) as exc_info:
            await store.commit(_commitment(election_id))

        assert exc_info.value.existing_commitment_id == first.id

    @pytest.mark.asyncio
    async def test_concurrent_commits(self, store: ElectionStoreStub) -> None:
        election_id = uuid4()
        await _issue_nonce(store, election_id)

        results = await asyncio.gather(
            store.commit(_commitment(election_id)),
            store.commit(_commitment(election_id)),
            return_exceptions=True,
        )

        assert sum(isinstance(r, VoteCommitment) for r in results) == 1
        assert sum(isinstance(r, DuplicateCommitmentError) for r in results) == 1

    @pytest.mark.asyncio
    async def test_reveal_marks_commitment(self, store: ElectionStoreStub) -> None:
        election_id = uuid4()
        await _issue_nonce(store, election_id)
        commitment = await store.commit(_commitment(election_id))

        await store.record_reveal(_vote(commitment))

        stored = await store.get_commitment(election_id, "v1", "general")
        assert stored is not None
        assert stored.revealed is True
        assert len(await store.list_votes(election_id, "general")) == 1

    @pytest.mark.asyncio
    async def test_second_reveal_rejected(self, store: ElectionStoreStub) -> None:
        election_id = uuid4()
        await _issue_nonce(store, election_id)
        commitment = await store.commit(_commitment(election_id))
        await store.record_reveal(_vote(commitment))

        with pytest.raises(AlreadyRevealedError):
            await store.record_reveal(_vote(commitment))

    @pytest.mark.asyncio
    async def test_list_commitments_by_stage(self, store: ElectionStoreStub) -> None:
        election_id = uuid4()
        await _issue_nonce(store, election_id)
        await store.commit(_commitment(election_id))

        assert len(await store.list_commitments(election_id)) == 1
        assert await store.list_commitments(election_id, "primary") == []


class TestClear:
    @pytest.mark.asyncio
    async def test_clear_drops_everything(self, store: ElectionStoreStub) -> None:
        election = _election()
        await store.create(election)
        await store.apply_transition(_transition(election.id, "declaration", "campaign"))

        store.clear()

        assert await store.get(election.id) is None
        assert store.transition_log == []
