"""
Pytest configuration and shared fixtures for Electorate tests.

Testing Standards:
- All async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async function mocking
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

import pytest

from tests.helpers import FakeTimeAuthority


@pytest.fixture
def fake_time_authority() -> FakeTimeAuthority:
    """Clock frozen at 2026-01-01T00:00:00Z."""
    return FakeTimeAuthority()
