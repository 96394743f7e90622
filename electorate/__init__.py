"""
Electorate - Election Protocol & Tally Engine

Runs periodic elections among registered agents: candidates declare,
the population evaluates them on identical information, and a winner
is chosen through a commit-reveal, ranked-choice vote.

Core guarantees:
- A ballot cannot be altered after it is committed
- An ineligible agent cannot vote, endorse, or run
- The tally is a deterministic function of the revealed ballots
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
