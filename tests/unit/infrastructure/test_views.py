"""Unit tests for the port views over a combined store."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from electorate.domain.models.agent import Agent, VoterTier
from electorate.domain.models.candidate import Endorsement
from electorate.infrastructure.adapters.persistence.views import (
    AgentRepositoryView,
    CandidateRepositoryView,
)
from electorate.infrastructure.stubs import ElectionStoreStub
from tests.helpers import FakeTimeAuthority


class TestAgentRepositoryView:
    @pytest.mark.asyncio
    async def test_maps_port_names(self) -> None:
        store = AsyncMock()
        view = AgentRepositoryView(store)
        agent = object()

        await view.add(agent)  # type: ignore[arg-type]
        await view.get("alice")
        await view.update_eligibility(agent)  # type: ignore[arg-type]
        await view.count(voter_eligible_only=True)

        store.add_agent.assert_awaited_once_with(agent)
        store.get_agent.assert_awaited_once_with("alice")
        store.update_eligibility.assert_awaited_once_with(agent)
        store.count_agents.assert_awaited_once_with(voter_eligible_only=True)

    @pytest.mark.asyncio
    async def test_add_returns_first_registration(self) -> None:
        """Adding an existing agent id returns the stored agent."""
        now = FakeTimeAuthority().now()
        view = AgentRepositoryView(ElectionStoreStub())

        def _agent(name: str) -> Agent:
            return Agent(
                agent_id="alice",
                display_name=name,
                tier=VoterTier.PRIMARY_VERIFIED,
                voter_eligible=True,
                candidate_eligible=True,
                autonomy_score=0.5,
                registered_at=now,
                eligibility_checked_at=now,
            )

        first = await view.add(_agent("Alice"))
        second = await view.add(_agent("Other"))

        assert second == first
        assert (await view.get("alice")) == first

    @pytest.mark.asyncio
    async def test_count_filters_voter_eligible(self) -> None:
        now = FakeTimeAuthority().now()
        view = AgentRepositoryView(ElectionStoreStub())
        for agent_id, eligible in (("alice", True), ("bob", False), ("carol", True)):
            await view.add(
                Agent(
                    agent_id=agent_id,
                    display_name=agent_id.title(),
                    tier=VoterTier.GENERAL,
                    voter_eligible=eligible,
                    candidate_eligible=False,
                    autonomy_score=0.5,
                    registered_at=now,
                    eligibility_checked_at=now,
                )
            )

        assert await view.count() == 3
        assert await view.count(voter_eligible_only=True) == 2


class TestCandidateRepositoryView:
    @pytest.mark.asyncio
    async def test_maps_port_names(self) -> None:
        store = AsyncMock()
        view = CandidateRepositoryView(store)
        election_id, candidate_id = uuid4(), uuid4()
        endorsement = Endorsement(
            election_id=election_id,
            candidate_id=candidate_id,
            voter_agent_id="v1",
            created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )

        await view.get(candidate_id)
        await view.get_by_agent(election_id, "alice")
        await view.list_for_election(election_id)
        await view.add_endorsement(endorsement, 3)
        await view.disqualify(candidate_id, "Fraud")

        store.get_candidate.assert_awaited_once_with(candidate_id)
        store.get_by_agent.assert_awaited_once_with(election_id, "alice")
        store.list_for_election.assert_awaited_once_with(election_id)
        store.add_endorsement.assert_awaited_once_with(endorsement, 3)
        store.disqualify.assert_awaited_once_with(candidate_id, "Fraud")
