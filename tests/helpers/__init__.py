"""Test helpers for Electorate tests.

Helpers:
    FakeTimeAuthority: Controllable time authority for deterministic tests
    ElectionWorld: Application services wired over in-memory stubs
    verified_signals / voter_only_signals / platform: builders

Usage:
    from tests.helpers import ElectionWorld, FakeTimeAuthority
"""

from tests.helpers.fake_time_authority import FakeTimeAuthority
from tests.helpers.world import (
    ElectionWorld,
    platform,
    verified_signals,
    voter_only_signals,
)

__all__ = [
    "ElectionWorld",
    "FakeTimeAuthority",
    "platform",
    "verified_signals",
    "voter_only_signals",
]
