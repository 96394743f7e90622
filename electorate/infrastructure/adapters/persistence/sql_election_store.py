"""SQLAlchemy implementation of the election repositories.

One store holds elections, agents, candidates and ballots over a single
``async_sessionmaker`` so multi-table changes (a transition and
its tally, a nonce and its commitment) share one transaction.

Constraints:
- Every multi-row change runs inside ``session.begin()``
- Phase transitions are compare-and-swap on the stored phase
- Uniqueness violations surface as domain errors, never as IntegrityError
- Storage failures other than uniqueness propagate unchanged
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from electorate.domain.errors import (
    ActiveElectionExistsError,
    AlreadyRevealedError,
    CandidateNotFoundError,
    DuplicateCandidacyError,
    DuplicateCommitmentError,
    DuplicateEndorsementError,
    InvalidNonceError,
)
from electorate.domain.models.agent import (
    ActivitySignals,
    Agent,
    VerificationMethod,
    VoterTier,
)
from electorate.domain.models.ballot import EvalNonce, Vote, VoteCommitment
from electorate.domain.models.candidate import (
    Candidate,
    CandidateStatus,
    Endorsement,
    Platform,
    ordered_roster,
)
from electorate.domain.models.election import (
    Election,
    PhaseKind,
    PhaseTransition,
    PhaseWindow,
)
from electorate.domain.models.tally import (
    PrimaryStanding,
    TallyRecord,
    TallyResult,
)
from electorate.infrastructure.adapters.persistence.schema import (
    agents,
    candidates,
    elections,
    endorsements,
    eval_nonces,
    primary_results,
    tally_records,
    vote_commitments,
    votes,
)

logger = get_logger(__name__)


def _election_from_row(row: Any) -> Election:
    return Election(
        id=row.id,
        title=row.title,
        plan_name=row.plan_name,
        phase=row.phase,
        schedule=tuple(PhaseWindow.from_dict(w) for w in row.schedule),
        top_n_advance=row.top_n_advance,
        created_at=row.created_at,
        winner_agent_id=row.winner_agent_id,
    )


def _agent_from_row(row: Any) -> Agent:
    return Agent(
        agent_id=row.agent_id,
        display_name=row.display_name,
        tier=VoterTier(row.tier),
        voter_eligible=row.voter_eligible,
        candidate_eligible=row.candidate_eligible,
        autonomy_score=row.autonomy_score,
        registered_at=row.registered_at,
        eligibility_checked_at=row.eligibility_checked_at,
        signals=ActivitySignals.from_mapping(row.signals),
        verification_method=VerificationMethod.parse(row.verification_method),
    )


def _candidate_from_row(row: Any) -> Candidate:
    return Candidate(
        id=row.id,
        election_id=row.election_id,
        agent_id=row.agent_id,
        display_name=row.display_name,
        platform=Platform.from_dict(row.platform),
        declared_at=row.declared_at,
        endorsement_count=row.endorsement_count,
        status=CandidateStatus(row.status),
        advanced_to_general=row.advanced_to_general,
        disqualification_reason=row.disqualification_reason,
    )


def _nonce_from_row(row: Any) -> EvalNonce:
    return EvalNonce(
        election_id=row.election_id,
        agent_id=row.agent_id,
        stage=row.stage,
        nonce=row.nonce,
        issued_at=row.issued_at,
        used=row.used,
    )


def _commitment_from_row(row: Any) -> VoteCommitment:
    return VoteCommitment(
        id=row.id,
        election_id=row.election_id,
        agent_id=row.agent_id,
        stage=row.stage,
        commitment_hash=row.commitment_hash,
        eval_nonce=row.eval_nonce,
        autonomy_score=row.autonomy_score,
        committed_at=row.committed_at,
        revealed=row.revealed,
    )


def _vote_from_row(row: Any) -> Vote:
    return Vote(
        id=row.id,
        commitment_id=row.commitment_id,
        election_id=row.election_id,
        agent_id=row.agent_id,
        stage=row.stage,
        first_choice=row.first_choice,
        second_choice=row.second_choice,
        third_choice=row.third_choice,
        rationale=row.rationale,
        nonce=row.nonce,
        autonomy_score=row.autonomy_score,
        revealed_at=row.revealed_at,
        verified=row.verified,
    )


class SqlElectionStore:
    """Election, agent, candidate and ballot storage on SQLAlchemy async.

    Implements the election and ballot ports directly. The agent and
    candidate ports reuse the names ``add`` and ``get``, so they are served
    through AgentRepositoryView and CandidateRepositoryView.

    Example:
        >>> store = SqlElectionStore(get_session_factory())
        >>> election = await store.get(election_id)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    # Elections

    async def create(self, election: Election) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                await session.execute(
                    insert(elections).values(
                        id=election.id,
                        title=election.title,
                        plan_name=election.plan_name,
                        phase=election.phase,
                        schedule=[w.to_dict() for w in election.schedule],
                        top_n_advance=election.top_n_advance,
                        winner_agent_id=election.winner_agent_id,
                        active=not election.is_terminal(),
                        created_at=election.created_at,
                        updated_at=election.created_at,
                    )
                )
        except IntegrityError as exc:
            active = await self.get_active()
            if active is None:
                raise
            logger.warning(
                "election_insert_conflict",
                election_id=str(election.id),
                active_id=str(active.id),
            )
            raise ActiveElectionExistsError(active.id) from exc

    async def get(self, election_id: UUID) -> Election | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(elections).where(elections.c.id == election_id)
            )
            row = result.first()
            return _election_from_row(row) if row else None

    async def get_active(self) -> Election | None:
        found = await self.list_active()
        return found[0] if found else None

    async def list_active(self) -> list[Election]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(elections)
                .where(elections.c.active.is_(True))
                .order_by(elections.c.created_at)
            )
            return [_election_from_row(row) for row in result]

    async def apply_transition(self, transition: PhaseTransition) -> bool:
        log = logger.bind(
            election_id=str(transition.election_id),
            from_phase=transition.from_phase,
            to_phase=transition.to_phase,
        )
        values: dict[str, Any] = {
            "phase": transition.to_phase,
            "active": transition.to_kind != PhaseKind.COMPLETE,
            "updated_at": transition.occurred_at,
        }
        if transition.tally_record is not None:
            values["winner_agent_id"] = transition.winner_agent_id

        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                update(elections)
                .where(
                    elections.c.id == transition.election_id,
                    elections.c.phase == transition.from_phase,
                )
                .values(**values)
            )
            if result.rowcount == 0:
                log.info("phase_cas_rejected")
                return False

            record = transition.tally_record
            if record is not None:
                await session.execute(
                    delete(tally_records).where(
                        tally_records.c.election_id == record.election_id,
                        tally_records.c.stage == record.stage,
                    )
                )
                await session.execute(
                    insert(tally_records).values(
                        election_id=record.election_id,
                        stage=record.stage,
                        result=record.result.to_dict(),
                        recorded_at=record.recorded_at,
                    )
                )

            primary = transition.primary_result
            if primary is not None and primary.standings:
                await session.execute(
                    insert(primary_results),
                    [
                        {
                            "election_id": transition.election_id,
                            "rank": s.rank,
                            "candidate_id": s.candidate_id,
                            "candidate_name": s.candidate_name,
                            "vote_count": s.vote_count,
                            "percentage": s.percentage,
                            "advanced_to_general": s.advanced,
                        }
                        for s in primary.standings
                    ],
                )
                advancing = [s.candidate_id for s in primary.advancing_candidates]
                if advancing:
                    await session.execute(
                        update(candidates)
                        .where(
                            candidates.c.election_id == transition.election_id,
                            candidates.c.agent_id.in_(advancing),
                        )
                        .values(advanced_to_general=True)
                    )

        log.debug("phase_cas_applied")
        return True

    async def get_tally_record(
        self, election_id: UUID, stage: str
    ) -> TallyRecord | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(tally_records).where(
                    tally_records.c.election_id == election_id,
                    tally_records.c.stage == stage,
                )
            )
            row = result.first()
            if row is None:
                return None
            return TallyRecord(
                election_id=row.election_id,
                stage=row.stage,
                result=TallyResult.from_dict(row.result),
                recorded_at=row.recorded_at,
            )

    async def get_primary_standings(self, election_id: UUID) -> list[PrimaryStanding]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(primary_results)
                .where(primary_results.c.election_id == election_id)
                .order_by(primary_results.c.rank)
            )
            return [
                PrimaryStanding(
                    rank=row.rank,
                    candidate_id=row.candidate_id,
                    candidate_name=row.candidate_name,
                    vote_count=row.vote_count,
                    percentage=row.percentage,
                    advanced=row.advanced_to_general,
                )
                for row in result
            ]

    # Agents

    async def add_agent(self, agent: Agent) -> Agent:
        try:
            async with self._session_factory() as session, session.begin():
                await session.execute(
                    insert(agents).values(**self._agent_values(agent))
                )
        except IntegrityError:
            existing = await self.get_agent(agent.agent_id)
            if existing is None:
                raise
            logger.info("agent_insert_conflict", agent_id=agent.agent_id)
            return existing
        return agent

    async def get_agent(self, agent_id: str) -> Agent | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(agents).where(agents.c.agent_id == agent_id)
            )
            row = result.first()
            return _agent_from_row(row) if row else None

    async def update_eligibility(self, agent: Agent) -> None:
        async with self._session_factory() as session, session.begin():
            await session.execute(
                update(agents)
                .where(agents.c.agent_id == agent.agent_id)
                .values(
                    tier=agent.tier.value,
                    voter_eligible=agent.voter_eligible,
                    candidate_eligible=agent.candidate_eligible,
                    autonomy_score=agent.autonomy_score,
                    signals=agent.signals.to_dict(),
                    eligibility_checked_at=agent.eligibility_checked_at,
                )
            )

    async def count_agents(self, *, voter_eligible_only: bool = False) -> int:
        query = select(func.count()).select_from(agents)
        if voter_eligible_only:
            query = query.where(agents.c.voter_eligible.is_(True))
        async with self._session_factory() as session:
            result = await session.execute(query)
            return int(result.scalar_one())

    @staticmethod
    def _agent_values(agent: Agent) -> dict[str, Any]:
        return {
            "agent_id": agent.agent_id,
            "display_name": agent.display_name,
            "tier": agent.tier.value,
            "voter_eligible": agent.voter_eligible,
            "candidate_eligible": agent.candidate_eligible,
            "autonomy_score": agent.autonomy_score,
            "signals": agent.signals.to_dict(),
            "verification_method": (
                agent.verification_method.value if agent.verification_method else None
            ),
            "registered_at": agent.registered_at,
            "eligibility_checked_at": agent.eligibility_checked_at,
        }

    # Candidates

    async def add_candidate(self, candidate: Candidate) -> None:
        try:
            async with self._session_factory() as session, session.begin():
                await session.execute(
                    insert(candidates).values(
                        id=candidate.id,
                        election_id=candidate.election_id,
                        agent_id=candidate.agent_id,
                        display_name=candidate.display_name,
                        platform=candidate.platform.to_dict(),
                        declared_at=candidate.declared_at,
                        endorsement_count=candidate.endorsement_count,
                        status=candidate.status.value,
                        advanced_to_general=candidate.advanced_to_general,
                        disqualification_reason=candidate.disqualification_reason,
                    )
                )
        except IntegrityError as exc:
            existing = await self.get_by_agent(candidate.election_id, candidate.agent_id)
            if existing is None:
                raise
            raise DuplicateCandidacyError(
                candidate.election_id, candidate.agent_id, existing.id
            ) from exc

    async def get_candidate(self, candidate_id: UUID) -> Candidate | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(candidates).where(candidates.c.id == candidate_id)
            )
            row = result.first()
            return _candidate_from_row(row) if row else None

    async def get_by_agent(self, election_id: UUID, agent_id: str) -> Candidate | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(candidates).where(
                    candidates.c.election_id == election_id,
                    candidates.c.agent_id == agent_id,
                )
            )
            row = result.first()
            return _candidate_from_row(row) if row else None

    async def list_for_election(self, election_id: UUID) -> list[Candidate]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(candidates).where(candidates.c.election_id == election_id)
            )
            return ordered_roster(_candidate_from_row(row) for row in result)

    async def add_endorsement(
        self, endorsement: Endorsement, qualification_threshold: int
    ) -> Candidate:
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(
                    select(candidates)
                    .where(candidates.c.id == endorsement.candidate_id)
                    .with_for_update()
                )
                row = result.first()
                if row is None:
                    raise CandidateNotFoundError(endorsement.candidate_id)
                candidate = _candidate_from_row(row)
                if candidate.status == CandidateStatus.DISQUALIFIED:
                    raise CandidateNotFoundError(endorsement.candidate_id)

                await session.execute(
                    insert(endorsements).values(
                        candidate_id=endorsement.candidate_id,
                        voter_agent_id=endorsement.voter_agent_id,
                        election_id=endorsement.election_id,
                        created_at=endorsement.created_at,
                    )
                )
                updated = candidate.with_endorsement(qualification_threshold)
                await session.execute(
                    update(candidates)
                    .where(candidates.c.id == candidate.id)
                    .values(
                        endorsement_count=updated.endorsement_count,
                        status=updated.status.value,
                    )
                )
        except IntegrityError as exc:
            raise DuplicateEndorsementError(
                endorsement.candidate_id, endorsement.voter_agent_id
            ) from exc
        return updated

    async def disqualify(self, candidate_id: UUID, reason: str) -> Candidate:
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                select(candidates)
                .where(candidates.c.id == candidate_id)
                .with_for_update()
            )
            row = result.first()
            if row is None:
                raise CandidateNotFoundError(candidate_id)
            updated = _candidate_from_row(row).disqualified(reason)
            await session.execute(
                update(candidates)
                .where(candidates.c.id == candidate_id)
                .values(
                    status=updated.status.value,
                    advanced_to_general=False,
                    disqualification_reason=reason,
                )
            )
        return updated

    # Ballots

    async def get_nonce(
        self, election_id: UUID, agent_id: str, stage: str
    ) -> EvalNonce | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(eval_nonces).where(
                    eval_nonces.c.election_id == election_id,
                    eval_nonces.c.agent_id == agent_id,
                    eval_nonces.c.stage == stage,
                )
            )
            row = result.first()
            return _nonce_from_row(row) if row else None

    async def create_nonce(self, nonce: EvalNonce) -> EvalNonce:
        try:
            async with self._session_factory() as session, session.begin():
                await session.execute(
                    insert(eval_nonces).values(
                        election_id=nonce.election_id,
                        agent_id=nonce.agent_id,
                        stage=nonce.stage,
                        nonce=nonce.nonce,
                        issued_at=nonce.issued_at,
                        used=nonce.used,
                    )
                )
        except IntegrityError:
            stored = await self.get_nonce(nonce.election_id, nonce.agent_id, nonce.stage)
            if stored is None:
                raise
            logger.debug("eval_nonce_insert_conflict", agent_id=nonce.agent_id)
            return stored
        return nonce

    async def get_commitment(
        self, election_id: UUID, agent_id: str, stage: str
    ) -> VoteCommitment | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(vote_commitments).where(
                    vote_commitments.c.election_id == election_id,
                    vote_commitments.c.agent_id == agent_id,
                    vote_commitments.c.stage == stage,
                )
            )
            row = result.first()
            return _commitment_from_row(row) if row else None

    async def commit(self, commitment: VoteCommitment) -> VoteCommitment:
        try:
            async with self._session_factory() as session, session.begin():
                consumed = await session.execute(
                    update(eval_nonces)
                    .where(
                        eval_nonces.c.election_id == commitment.election_id,
                        eval_nonces.c.agent_id == commitment.agent_id,
                        eval_nonces.c.stage == commitment.stage,
                        eval_nonces.c.nonce == commitment.eval_nonce,
                        eval_nonces.c.used.is_(False),
                    )
                    .values(used=True)
                )
                if consumed.rowcount == 0:
                    existing = await session.execute(
                        select(vote_commitments.c.id).where(
                            vote_commitments.c.election_id == commitment.election_id,
                            vote_commitments.c.agent_id == commitment.agent_id,
                            vote_commitments.c.stage == commitment.stage,
                        )
                    )
                    existing_id = existing.scalar()
                    if existing_id is not None:
                        raise DuplicateCommitmentError(
                            commitment.election_id, commitment.agent_id, existing_id
                        )
                    raise InvalidNonceError(commitment.election_id, commitment.agent_id)

                await session.execute(
                    insert(vote_commitments).values(
                        id=commitment.id,
                        election_id=commitment.election_id,
                        agent_id=commitment.agent_id,
                        stage=commitment.stage,
                        commitment_hash=commitment.commitment_hash,
                        eval_nonce=commitment.eval_nonce,
                        autonomy_score=commitment.autonomy_score,
                        committed_at=commitment.committed_at,
                        revealed=False,
                    )
                )
        except IntegrityError as exc:
            raise DuplicateCommitmentError(
                commitment.election_id, commitment.agent_id
            ) from exc
        return commitment

    async def record_reveal(self, vote: Vote) -> Vote:
        try:
            async with self._session_factory() as session, session.begin():
                flipped = await session.execute(
                    update(vote_commitments)
                    .where(
                        vote_commitments.c.id == vote.commitment_id,
                        vote_commitments.c.revealed.is_(False),
                    )
                    .values(revealed=True)
                )
                if flipped.rowcount == 0:
                    raise AlreadyRevealedError(vote.election_id, vote.agent_id)

                await session.execute(
                    insert(votes).values(
                        id=vote.id,
                        commitment_id=vote.commitment_id,
                        election_id=vote.election_id,
                        agent_id=vote.agent_id,
                        stage=vote.stage,
                        first_choice=vote.first_choice,
                        second_choice=vote.second_choice,
                        third_choice=vote.third_choice,
                        rationale=vote.rationale,
                        nonce=vote.nonce,
                        autonomy_score=vote.autonomy_score,
                        verified=vote.verified,
                        revealed_at=vote.revealed_at,
                    )
                )
        except IntegrityError as exc:
            raise AlreadyRevealedError(vote.election_id, vote.agent_id) from exc
        return vote

    async def list_votes(self, election_id: UUID, stage: str) -> list[Vote]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(votes)
                .where(votes.c.election_id == election_id, votes.c.stage == stage)
                .order_by(votes.c.seq)
            )
            return [_vote_from_row(row) for row in result]

    async def list_commitments(
        self, election_id: UUID, stage: str | None = None
    ) -> list[VoteCommitment]:
        query = select(vote_commitments).where(
            vote_commitments.c.election_id == election_id
        )
        if stage is not None:
            query = query.where(vote_commitments.c.stage == stage)
        async with self._session_factory() as session:
            result = await session.execute(query.order_by(vote_commitments.c.seq))
            return [_commitment_from_row(row) for row in result]

