"""Unit tests for CommitRevealService.

Constraints under test:
- One nonce, one commitment and one vote per agent per stage
- A reveal is accepted only if it hashes to the stored commitment
- The autonomy score is the one captured at commit time
"""

from __future__ import annotations

import asyncio

import pytest

from electorate.domain.errors import (
    AgentNotFoundError,
    AlreadyRevealedError,
    DuplicateCommitmentError,
    HashMismatchError,
    IneligibleAgentError,
    InvalidCommitmentHashError,
    InvalidNonceError,
    NotCommittedError,
    PhaseViolationError,
    UnknownCandidateError,
)
from electorate.domain.models.agent import VerificationClaim
from electorate.domain.models.ballot import BallotPayload
from electorate.domain.models.election import (
    SINGLE_TIER_PLAN,
    TWO_TIER_PLAN,
    Election,
)
from electorate.domain.services.commitment import compute_commitment_hash
from tests.helpers import (
    ElectionWorld,
    platform,
    verified_signals,
    voter_only_signals,
)

VOTERS = ("v1", "v2", "v3", "v4")


async def _sealed_election(
    world: ElectionWorld, plan: str = SINGLE_TIER_PLAN
) -> Election:
    """Alice and Bob qualified, four voters registered, sealed phase open."""
    election = await world.admin.create_election("Council", plan=plan)
    await world.register("alice")
    await world.register("bob")
    await world.register("carol")
    for voter in VOTERS:
        await world.register(voter, voter_only_signals())
    await world.qualified_candidate(election.id, "alice", ("v1", "v2"))
    await world.qualified_candidate(election.id, "bob", ("v2", "v3"))
    # Carol never qualifies
    await world.candidacy.declare(election.id, "carol", platform("Independent"))
    sealed = "primary_sealed" if plan == TWO_TIER_PLAN else "sealed"
    await world.move_to(election.id, sealed)
    return election


class TestEvaluationPacket:
    """Tests for nonce issuance and the evaluation packet."""

    @pytest.mark.asyncio
    async def test_packet_lists_only_qualified_candidates(
        self, world: ElectionWorld
    ) -> None:
        election = await _sealed_election(world)

        packet = await world.commit_reveal.evaluation_packet(election.id, "v1")

        assert [c.agent_id for c in packet.candidates] == ["alice", "bob"]
        assert packet.stage == "general"
        assert len(packet.eval_nonce) == 64

    @pytest.mark.asyncio
    async def test_nonce_is_stable_until_used(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)

        first = await world.commit_reveal.issue_nonce(election.id, "v1")
        second = await world.commit_reveal.issue_nonce(election.id, "v1")

        assert first.nonce == second.nonce

    @pytest.mark.asyncio
    async def test_nonces_differ_between_voters(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)

        one = await world.commit_reveal.issue_nonce(election.id, "v1")
        two = await world.commit_reveal.issue_nonce(election.id, "v2")

        assert one.nonce != two.nonce

    @pytest.mark.asyncio
    async def test_nonce_refused_after_commit(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)
        await world.commit(election.id, "v1", BallotPayload(first_choice="alice"))

        with pytest.raises(DuplicateCommitmentError):
            await world.commit_reveal.issue_nonce(election.id, "v1")

    @pytest.mark.asyncio
    async def test_nonce_refused_during_campaign(self, world: ElectionWorld) -> None:
        election = await world.admin.create_election("Council")
        await world.register("v1", voter_only_signals())
        await world.move_to(election.id, "campaign")

        with pytest.raises(PhaseViolationError):
            await world.commit_reveal.issue_nonce(election.id, "v1")


class TestCommit:
    """Tests for commit()."""

    @pytest.mark.asyncio
    async def test_commit_stores_commitment_with_autonomy(
        self, world: ElectionWorld
    ) -> None:
        election = await _sealed_election(world)
        packet = await world.commit_reveal.evaluation_packet(election.id, "v1")
        digest = compute_commitment_hash(
            BallotPayload(first_choice="alice"), packet.eval_nonce
        )

        commitment = await world.commit_reveal.commit(
            election.id, "v1", digest.upper(), packet.eval_nonce
        )

        voter = await world.agents.get("v1")
        assert voter is not None
        assert commitment.commitment_hash == digest
        assert commitment.autonomy_score == voter.autonomy_score
        assert commitment.revealed is False
        nonce = await world.store.get_nonce(election.id, "v1", "general")
        assert nonce is not None
        assert nonce.used is True

    @pytest.mark.asyncio
    async def test_late_commit_in_voting_phase(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)
        await world.move_to(election.id, "voting")

        await world.commit(election.id, "v1", BallotPayload(first_choice="alice"))

        assert len(await world.store.list_commitments(election.id)) == 1

    @pytest.mark.asyncio
    async def test_malformed_hash(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)
        packet = await world.commit_reveal.evaluation_packet(election.id, "v1")

        with pytest.raises(InvalidCommitmentHashError):
            await world.commit_reveal.commit(election.id, "v1", "xyz", packet.eval_nonce)

    @pytest.mark.asyncio
    async def test_wrong_nonce(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)
        await world.commit_reveal.evaluation_packet(election.id, "v1")
        forged = "0" * 64

        with pytest.raises(InvalidNonceError):
            await world.commit_reveal.commit(
                election.id,
                "v1",
                compute_commitment_hash(BallotPayload(first_choice="alice"), forged),
                forged,
            )

    @pytest.mark.asyncio
    async def test_commit_without_issued_nonce(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)
        nonce = "1" * 64

        with pytest.raises(InvalidNonceError):
            await world.commit_reveal.commit(
                election.id,
                "v1",
                compute_commitment_hash(BallotPayload(first_choice="alice"), nonce),
                nonce,
            )

    @pytest.mark.asyncio
    async def test_second_commit_rejected(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)
        nonce = await world.commit(election.id, "v1", BallotPayload(first_choice="alice"))

        with pytest.raises(DuplicateCommitmentError):
            await world.commit_reveal.commit(
                election.id,
                "v1",
                compute_commitment_hash(BallotPayload(first_choice="bob"), nonce),
                nonce,
            )

    @pytest.mark.asyncio
    async def test_concurrent_commits_one_succeeds(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)
        packet = await world.commit_reveal.evaluation_packet(election.id, "v1")
        hashes = [
            compute_commitment_hash(BallotPayload(first_choice=c), packet.eval_nonce)
            for c in ("alice", "bob")
        ]

        results = await asyncio.gather(
            *(
                world.commit_reveal.commit(election.id, "v1", h, packet.eval_nonce)
                for h in hashes
            ),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], DuplicateCommitmentError)
        assert len(await world.store.list_commitments(election.id)) == 1

    @pytest.mark.asyncio
    async def test_ineligible_voter(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)
        await world.register("ghost_voter", signals=verified_signals(claimed=False))

        with pytest.raises(IneligibleAgentError) as exc_info:
            await world.commit_reveal.issue_nonce(election.id, "ghost_voter")

        assert exc_info.value.issues == ("Agent is not eligible to vote",)

    @pytest.mark.asyncio
    async def test_unregistered_voter(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)

        with pytest.raises(AgentNotFoundError):
            await world.commit_reveal.issue_nonce(election.id, "nobody")

    @pytest.mark.asyncio
    async def test_general_voter_barred_from_primary(
        self, world: ElectionWorld
    ) -> None:
        election = await _sealed_election(world, plan=TWO_TIER_PLAN)
        general = await world.registration.register_general(
            "Observer", VerificationClaim(method="manual")
        )

        with pytest.raises(IneligibleAgentError) as exc_info:
            await world.commit_reveal.issue_nonce(election.id, general.agent.agent_id)

        assert "Primary voting requires a verified voter" in exc_info.value.issues


class TestReveal:
    """Tests for reveal()."""

    @pytest.mark.asyncio
    async def test_matching_reveal_is_stored(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)
        ballot = BallotPayload(first_choice="alice", second_choice="bob", rationale="Plan")
        nonce = await world.commit(election.id, "v1", ballot)
        await world.move_to(election.id, "voting")

        vote = await world.commit_reveal.reveal(election.id, "v1", ballot, nonce)

        assert vote.first_choice == "alice"
        assert vote.second_choice == "bob"
        assert vote.rationale == "Plan"
        assert vote.verified is True
        commitment = await world.store.get_commitment(election.id, "v1", "general")
        assert commitment is not None
        assert commitment.revealed is True
        assert vote.commitment_id == commitment.id

    @pytest.mark.asyncio
    async def test_reveal_with_other_nonce_mismatches(
        self, world: ElectionWorld
    ) -> None:
        """Committing with one nonce and revealing with another fails."""
        election = await _sealed_election(world)
        ballot = BallotPayload(first_choice="alice")
        await world.commit(election.id, "v1", ballot)
        await world.move_to(election.id, "voting")

        with pytest.raises(HashMismatchError):
            await world.commit_reveal.reveal(election.id, "v1", ballot, "f" * 64)

        assert await world.store.list_votes(election.id, "general") == []

    @pytest.mark.asyncio
    async def test_reveal_with_changed_ballot_mismatches(
        self, world: ElectionWorld
    ) -> None:
        election = await _sealed_election(world)
        nonce = await world.commit(election.id, "v1", BallotPayload(first_choice="alice"))
        await world.move_to(election.id, "voting")

        with pytest.raises(HashMismatchError):
            await world.commit_reveal.reveal(
                election.id, "v1", BallotPayload(first_choice="bob"), nonce
            )

    @pytest.mark.asyncio
    async def test_second_reveal_rejected(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)
        ballot = BallotPayload(first_choice="alice")
        nonce = await world.commit(election.id, "v1", ballot)
        await world.move_to(election.id, "voting")
        await world.commit_reveal.reveal(election.id, "v1", ballot, nonce)

        with pytest.raises(AlreadyRevealedError):
            await world.commit_reveal.reveal(election.id, "v1", ballot, nonce)

    @pytest.mark.asyncio
    async def test_reveal_without_commitment(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)
        await world.move_to(election.id, "voting")

        with pytest.raises(NotCommittedError):
            await world.commit_reveal.reveal(
                election.id, "v1", BallotPayload(first_choice="alice"), "a" * 64
            )

    @pytest.mark.asyncio
    async def test_reveal_refused_while_sealed(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)
        ballot = BallotPayload(first_choice="alice")
        nonce = await world.commit(election.id, "v1", ballot)

        with pytest.raises(PhaseViolationError):
            await world.commit_reveal.reveal(election.id, "v1", ballot, nonce)

    @pytest.mark.asyncio
    async def test_first_choice_must_be_on_ballot(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)
        ballot = BallotPayload(first_choice="carol")
        nonce = await world.commit(election.id, "v1", ballot)
        await world.move_to(election.id, "voting")

        with pytest.raises(UnknownCandidateError):
            await world.commit_reveal.reveal(election.id, "v1", ballot, nonce)

    @pytest.mark.asyncio
    async def test_autonomy_score_from_commit_time(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)
        ballot = BallotPayload(first_choice="alice")
        nonce = await world.commit(election.id, "v1", ballot)
        committed = await world.store.get_commitment(election.id, "v1", "general")
        assert committed is not None

        world.reputation.set_profile("v1", verified_signals(account_age_days=400))
        refreshed = await world.registration.refresh_eligibility("v1")
        assert refreshed.agent.autonomy_score != committed.autonomy_score

        await world.move_to(election.id, "voting")
        vote = await world.commit_reveal.reveal(election.id, "v1", ballot, nonce)

        assert vote.autonomy_score == committed.autonomy_score


class TestVoterRoll:
    @pytest.mark.asyncio
    async def test_roll_in_commit_order(self, world: ElectionWorld) -> None:
        election = await _sealed_election(world)
        ballot = BallotPayload(first_choice="alice")
        await world.commit(election.id, "v2", ballot)
        nonce = await world.commit(election.id, "v1", ballot)
        await world.move_to(election.id, "voting")
        await world.commit_reveal.reveal(election.id, "v1", ballot, nonce)

        roll = await world.commit_reveal.voter_roll(election.id)

        assert [(e.agent_id, e.revealed) for e in roll] == [
            ("v2", False),
            ("v1", True),
        ]
