"""Configuration module for Electorate.

Available Configurations:
- ElectionConfig: Phase durations, qualification threshold, advancement
  pool, vote weighting and reputation service settings
"""

from electorate.config.election_config import (
    DEFAULT_ELECTION_CONFIG,
    TEST_ELECTION_CONFIG,
    ElectionConfig,
)

__all__ = [
    "ElectionConfig",
    "DEFAULT_ELECTION_CONFIG",
    "TEST_ELECTION_CONFIG",
]
