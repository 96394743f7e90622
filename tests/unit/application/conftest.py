"""Fixtures for application service tests."""

from __future__ import annotations

import pytest

from tests.helpers import ElectionWorld


@pytest.fixture
def world() -> ElectionWorld:
    """All services over a fresh in-memory store, clock at 2026-01-01."""
    return ElectionWorld()
