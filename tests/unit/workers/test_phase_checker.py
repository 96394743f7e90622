"""Unit tests for PhaseCheckWorker."""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from electorate.infrastructure.observability import get_run_id, set_run_id
from electorate.workers.phase_checker import PhaseCheckWorker
from tests.helpers import ElectionWorld, FakeTimeAuthority


class TestRunOnce:
    """Tests for run_once()."""

    @pytest.mark.asyncio
    async def test_advances_due_elections(self) -> None:
        world = ElectionWorld()
        election = await world.admin.create_election("Council")
        worker = PhaseCheckWorker(world.phase_machine, world.time)
        world.time.advance(delta=timedelta(days=10, seconds=1))

        transitions = await worker.run_once()

        assert [(t.from_phase, t.to_phase) for t in transitions] == [
            ("declaration", "campaign")
        ]
        stored = await world.phase_machine.get_election(election.id)
        assert stored.phase == "campaign"

    @pytest.mark.asyncio
    async def test_nothing_due(self) -> None:
        world = ElectionWorld()
        await world.admin.create_election("Council")
        worker = PhaseCheckWorker(world.phase_machine, world.time)

        assert await worker.run_once() == []

    @pytest.mark.asyncio
    async def test_explicit_now_passed_through(
        self, fake_time_authority: FakeTimeAuthority
    ) -> None:
        machine = AsyncMock()
        machine.tick_all.return_value = []
        worker = PhaseCheckWorker(machine, fake_time_authority)
        now = fake_time_authority.now() + timedelta(days=3)

        await worker.run_once(now)

        machine.tick_all.assert_awaited_once_with(now)

    @pytest.mark.asyncio
    async def test_sets_run_id(self, fake_time_authority: FakeTimeAuthority) -> None:
        set_run_id("")
        machine = AsyncMock()
        machine.tick_all.return_value = []

        await PhaseCheckWorker(machine, fake_time_authority).run_once()

        assert get_run_id() != ""
        set_run_id("")

    @pytest.mark.asyncio
    async def test_storage_failure_propagates(
        self, fake_time_authority: FakeTimeAuthority
    ) -> None:
        machine = AsyncMock()
        machine.tick_all.side_effect = ConnectionError("database unavailable")

        with pytest.raises(ConnectionError):
            await PhaseCheckWorker(machine, fake_time_authority).run_once()
