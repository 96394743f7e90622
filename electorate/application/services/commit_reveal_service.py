"""Commit-reveal voting service.

Voting happens in two steps. During the sealed phase a voter fetches an
evaluation packet (which issues their nonce) and commits
``SHA-256(canonical_ballot || nonce)``. During the voting phase they reveal
the ballot and nonce, and the reveal is accepted only if it hashes to the
commitment.

Constraints:
- One nonce, one commitment and one revealed ballot per agent per stage
- Only voter-eligible agents may fetch nonces or commit; primary stages
  additionally require the verified tier
- The autonomy score is captured at commit time, not at reveal time
- A failed reveal never says whether the ballot or the nonce was wrong
"""

from __future__ import annotations

import hmac
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from structlog import get_logger

from electorate.application.ports.agent_repository import AgentRepositoryProtocol
from electorate.application.ports.ballot_repository import BallotRepositoryProtocol
from electorate.application.ports.candidate_repository import (
    CandidateRepositoryProtocol,
)
from electorate.application.ports.time_authority import TimeAuthorityProtocol
from electorate.application.services.phase_machine_service import PhaseMachineService
from electorate.domain.errors import (
    AgentNotFoundError,
    AlreadyRevealedError,
    DuplicateCommitmentError,
    HashMismatchError,
    IneligibleAgentError,
    InvalidCommitmentHashError,
    InvalidNonceError,
    NotCommittedError,
    UnknownCandidateError,
)
from electorate.domain.models.agent import Agent, VoterTier
from electorate.domain.models.ballot import (
    BallotPayload,
    EvalNonce,
    Vote,
    VoteCommitment,
    is_hex_256,
)
from electorate.domain.models.candidate import Candidate, ballot_roster
from electorate.domain.models.election import Election, Operation, Stage
from electorate.domain.services.commitment import generate_nonce, verify_commitment

logger = get_logger(__name__)

EVALUATION_INSTRUCTIONS = (
    "Evaluate every candidate using only the data in this packet. Rank up to "
    "three choices, then commit SHA-256(canonical JSON of your ballot + "
    "eval_nonce) before the sealed phase ends."
)


@dataclass(frozen=True)
class EvaluationPacket:
    """What a voter evaluates during the sealed phase.

    Attributes:
        election_id: The election being voted in.
        stage: Stage the nonce was issued for.
        eval_nonce: Nonce to append to the canonical ballot when hashing.
        candidates: The ballot roster, in declaration order.
        instructions: How to build the commitment.
    """

    election_id: UUID
    stage: str
    eval_nonce: str
    candidates: tuple[Candidate, ...] = field(default_factory=tuple)
    instructions: str = EVALUATION_INSTRUCTIONS

    def to_dict(self) -> dict[str, Any]:
        return {
            "election_id": str(self.election_id),
            "stage": self.stage,
            "eval_nonce": self.eval_nonce,
            "candidates": [c.to_dict() for c in self.candidates],
            "instructions": self.instructions,
        }


@dataclass(frozen=True)
class VoterRollEntry:
    """Who committed, when, and whether they revealed."""

    agent_id: str
    stage: str
    committed_at: datetime
    revealed: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "agent_id": self.agent_id,
            "stage": self.stage,
            "committed_at": self.committed_at.isoformat(),
            "revealed": self.revealed,
        }


class CommitRevealService:
    """Nonce issuance, commitments and verified reveals.

    Example:
        >>> service = CommitRevealService(
        ...     phase_machine=machine,
        ...     agent_repo=agent_repo,
        ...     candidate_repo=candidate_repo,
        ...     ballot_repo=ballot_repo,
        ...     time_authority=time_authority,
        ... )
        >>> packet = await service.evaluation_packet(election_id, "agent-1")
        >>> await service.commit(election_id, "agent-1", digest, packet.eval_nonce)
    """

    def __init__(
        self,
        phase_machine: PhaseMachineService,
        agent_repo: AgentRepositoryProtocol,
        candidate_repo: CandidateRepositoryProtocol,
        ballot_repo: BallotRepositoryProtocol,
        time_authority: TimeAuthorityProtocol,
    ) -> None:
        self._phases = phase_machine
        self._agents = agent_repo
        self._candidates = candidate_repo
        self._ballots = ballot_repo
        self._time = time_authority

    async def issue_nonce(self, election_id: UUID, agent_id: str) -> EvalNonce:
        """Return the agent's unused nonce for the current stage, minting one if needed.

        Concurrent calls for the same agent converge on one stored nonce.

        Raises:
            PhaseViolationError: Not in a sealed phase or its voting phase.
            AgentNotFoundError: Unknown agent.
            IneligibleAgentError: The agent may not vote in this stage.
            DuplicateCommitmentError: The agent's nonce was already consumed.
        """
        election = await self._phases.guard(election_id, Operation.ISSUE_NONCE)
        await self._require_voter(election, agent_id)
        stage = election.current_stage.value
        log = logger.bind(election_id=str(election_id), agent_id=agent_id, stage=stage)

        stored = await self._ballots.get_nonce(election_id, agent_id, stage)
        if stored is None:
            stored = await self._ballots.create_nonce(
                EvalNonce(
                    election_id=election_id,
                    agent_id=agent_id,
                    stage=stage,
                    nonce=generate_nonce(),
                    issued_at=self._time.now(),
                )
            )
            log.info("eval_nonce_issued")

        if stored.used:
            log.warning("eval_nonce_rejected_already_committed")
            raise DuplicateCommitmentError(election_id, agent_id)

        return stored

    async def evaluation_packet(
        self, election_id: UUID, agent_id: str
    ) -> EvaluationPacket:
        """Issue the agent's nonce and return the ballot roster to evaluate."""
        nonce = await self.issue_nonce(election_id, agent_id)
        election = await self._phases.get_election(election_id)
        roster = await self._ballot_roster(election)
        return EvaluationPacket(
            election_id=election_id,
            stage=nonce.stage,
            eval_nonce=nonce.nonce,
            candidates=tuple(roster),
        )

    async def commit(
        self,
        election_id: UUID,
        agent_id: str,
        commitment_hash: str,
        nonce: str,
    ) -> VoteCommitment:
        """Seal a ballot.

        Args:
            election_id: The election being voted in.
            agent_id: The committing voter.
            commitment_hash: ``SHA-256(canonical_ballot || nonce)`` as hex.
            nonce: The nonce issued with the evaluation packet.

        Returns:
            The stored commitment, carrying the voter's current autonomy score.

        Raises:
            PhaseViolationError: Not in a sealed phase or its voting phase.
            AgentNotFoundError: Unknown agent.
            IneligibleAgentError: The agent may not vote in this stage.
            InvalidCommitmentHashError: The hash is not 64 hex characters.
            DuplicateCommitmentError: The agent already committed.
            InvalidNonceError: The nonce is not the agent's stored unused nonce.
        """
        election = await self._phases.guard(election_id, Operation.COMMIT)
        agent = await self._require_voter(election, agent_id)
        stage = election.current_stage.value
        log = logger.bind(election_id=str(election_id), agent_id=agent_id, stage=stage)

        normalized = (commitment_hash or "").strip().lower()
        if not is_hex_256(normalized):
            log.warning("commit_rejected_bad_hash")
            raise InvalidCommitmentHashError(agent_id)

        existing = await self._ballots.get_commitment(election_id, agent_id, stage)
        if existing is not None:
            log.warning("commit_rejected_duplicate", commitment_id=str(existing.id))
            raise DuplicateCommitmentError(election_id, agent_id, existing.id)

        stored = await self._ballots.get_nonce(election_id, agent_id, stage)
        if stored is None or stored.used or not hmac.compare_digest(
            stored.nonce.encode("utf-8"), (nonce or "").encode("utf-8")
        ):
            log.warning("commit_rejected_invalid_nonce", nonce_issued=stored is not None)
            raise InvalidNonceError(election_id, agent_id)

        commitment = await self._ballots.commit(
            VoteCommitment(
                id=uuid4(),
                election_id=election_id,
                agent_id=agent_id,
                stage=stage,
                commitment_hash=normalized,
                eval_nonce=stored.nonce,
                autonomy_score=agent.autonomy_score,
                committed_at=self._time.now(),
            )
        )
        log.info("vote_committed", commitment_id=str(commitment.id))
        return commitment

    async def reveal(
        self,
        election_id: UUID,
        agent_id: str,
        ballot: BallotPayload,
        nonce: str,
    ) -> Vote:
        """Open a commitment.

        Args:
            election_id: The election being voted in.
            agent_id: The revealing voter.
            ballot: The ballot exactly as committed to.
            nonce: The nonce exactly as committed with.

        Returns:
            The stored, verified vote.

        Raises:
            PhaseViolationError: Not in a voting or tally phase.
            NotCommittedError: The agent has no commitment for this stage.
            AlreadyRevealedError: The commitment was already opened.
            HashMismatchError: The ballot and nonce do not hash to the commitment.
            UnknownCandidateError: The first choice is not on the ballot.
        """
        election = await self._phases.guard(election_id, Operation.REVEAL)
        stage = election.current_stage.value
        log = logger.bind(election_id=str(election_id), agent_id=agent_id, stage=stage)

        commitment = await self._ballots.get_commitment(election_id, agent_id, stage)
        if commitment is None:
            log.warning("reveal_rejected_not_committed")
            raise NotCommittedError(election_id, agent_id)

        if commitment.revealed:
            log.warning("reveal_rejected_already_revealed")
            raise AlreadyRevealedError(election_id, agent_id)

        if not verify_commitment(ballot, nonce or "", commitment.commitment_hash):
            log.warning("reveal_rejected_hash_mismatch", commitment_id=str(commitment.id))
            raise HashMismatchError()

        roster = await self._ballot_roster(election)
        if ballot.first_choice not in {c.agent_id for c in roster}:
            log.warning("reveal_rejected_unknown_candidate", first_choice=ballot.first_choice)
            raise UnknownCandidateError(election_id, ballot.first_choice)

        vote = await self._ballots.record_reveal(
            Vote(
                id=uuid4(),
                commitment_id=commitment.id,
                election_id=election_id,
                agent_id=agent_id,
                stage=stage,
                first_choice=ballot.first_choice,
                second_choice=ballot.second_choice,
                third_choice=ballot.third_choice,
                rationale=ballot.rationale,
                nonce=nonce,
                autonomy_score=commitment.autonomy_score,
                revealed_at=self._time.now(),
            )
        )
        log.info("vote_revealed", vote_id=str(vote.id), first_choice=vote.first_choice)
        return vote

    async def voter_roll(self, election_id: UUID) -> list[VoterRollEntry]:
        """Every commitment of the election, in commit order."""
        await self._phases.get_election(election_id)
        commitments = await self._ballots.list_commitments(election_id)
        return [
            VoterRollEntry(
                agent_id=c.agent_id,
                stage=c.stage,
                committed_at=c.committed_at,
                revealed=c.revealed,
            )
            for c in commitments
        ]

    async def _require_voter(self, election: Election, agent_id: str) -> Agent:
        agent = await self._agents.get(agent_id)
        if agent is None:
            logger.warning("voter_not_registered", agent_id=agent_id)
            raise AgentNotFoundError(agent_id)

        issues: list[str] = []
        if not agent.voter_eligible:
            issues.append("Agent is not eligible to vote")
        if (
            election.has_primary
            and election.current_stage == Stage.PRIMARY
            and agent.tier != VoterTier.PRIMARY_VERIFIED
        ):
            issues.append("Primary voting requires a verified voter")

        if issues:
            logger.warning(
                "voter_rejected_ineligible",
                agent_id=agent_id,
                election_id=str(election.id),
                issues=issues,
            )
            raise IneligibleAgentError(agent_id, "vote", issues)
        return agent

    async def _ballot_roster(self, election: Election) -> list[Candidate]:
        candidates = await self._candidates.list_for_election(election.id)
        return ballot_roster(
            candidates,
            general_stage_of_two_tier=(
                election.has_primary and election.current_stage == Stage.GENERAL
            ),
        )
