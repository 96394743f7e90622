"""SQLAlchemy Core schema for election storage.

Uniqueness that the protocol relies on lives here:
- one non-terminal election (partial unique index on ``active``)
- one candidacy per (election, agent)
- one endorsement per (candidate, voter)
- one nonce, one commitment and one vote per (election, agent, stage)
- one vote per commitment
"""

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Identity,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import Uuid

metadata = MetaData()

# JSONB on PostgreSQL, plain JSON elsewhere
JsonDocument = JSON().with_variant(JSONB(), "postgresql")

elections = Table(
    "elections",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("title", Text, nullable=False),
    Column("plan_name", String(32), nullable=False),
    Column("phase", String(64), nullable=False),
    Column("schedule", JsonDocument, nullable=False),
    Column("top_n_advance", Integer, nullable=False),
    Column("winner_agent_id", String(255), nullable=True),
    Column("active", Boolean, nullable=False, server_default=text("true")),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Index(
        "uq_elections_single_active",
        "active",
        unique=True,
        postgresql_where=text("active"),
        sqlite_where=text("active"),
    ),
)

agents = Table(
    "agents",
    metadata,
    Column("agent_id", String(255), primary_key=True),
    Column("display_name", Text, nullable=False),
    Column("tier", String(32), nullable=False),
    Column("voter_eligible", Boolean, nullable=False),
    Column("candidate_eligible", Boolean, nullable=False),
    Column("autonomy_score", Float, nullable=False),
    Column("signals", JsonDocument, nullable=False),
    Column("verification_method", String(32), nullable=True),
    Column("registered_at", DateTime(timezone=True), nullable=False),
    Column("eligibility_checked_at", DateTime(timezone=True), nullable=False),
)

candidates = Table(
    "candidates",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("election_id", Uuid, ForeignKey("elections.id"), nullable=False),
    Column("agent_id", String(255), ForeignKey("agents.agent_id"), nullable=False),
    Column("display_name", Text, nullable=False),
    Column("platform", JsonDocument, nullable=False),
    Column("declared_at", DateTime(timezone=True), nullable=False),
    Column("endorsement_count", Integer, nullable=False, server_default=text("0")),
    Column("status", String(16), nullable=False),
    Column(
        "advanced_to_general", Boolean, nullable=False, server_default=text("false")
    ),
    Column("disqualification_reason", Text, nullable=True),
    UniqueConstraint("election_id", "agent_id", name="uq_candidates_election_agent"),
)

endorsements = Table(
    "endorsements",
    metadata,
    Column("candidate_id", Uuid, ForeignKey("candidates.id"), primary_key=True),
    Column("voter_agent_id", String(255), primary_key=True),
    Column("election_id", Uuid, ForeignKey("elections.id"), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

eval_nonces = Table(
    "eval_nonces",
    metadata,
    Column("election_id", Uuid, ForeignKey("elections.id"), primary_key=True),
    Column("agent_id", String(255), primary_key=True),
    Column("stage", String(16), primary_key=True),
    Column("nonce", String(64), nullable=False),
    Column("issued_at", DateTime(timezone=True), nullable=False),
    Column("used", Boolean, nullable=False, server_default=text("false")),
)

vote_commitments = Table(
    "vote_commitments",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("seq", BigInteger, Identity(), nullable=False),
    Column("election_id", Uuid, ForeignKey("elections.id"), nullable=False),
    Column("agent_id", String(255), nullable=False),
    Column("stage", String(16), nullable=False),
    Column("commitment_hash", String(64), nullable=False),
    Column("eval_nonce", String(64), nullable=False),
    Column("autonomy_score", Float, nullable=False),
    Column("committed_at", DateTime(timezone=True), nullable=False),
    Column("revealed", Boolean, nullable=False, server_default=text("false")),
    UniqueConstraint(
        "election_id", "agent_id", "stage", name="uq_vote_commitments_voter_stage"
    ),
)

votes = Table(
    "votes",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("seq", BigInteger, Identity(), nullable=False),
    Column(
        "commitment_id",
        Uuid,
        ForeignKey("vote_commitments.id"),
        nullable=False,
        unique=True,
    ),
    Column("election_id", Uuid, ForeignKey("elections.id"), nullable=False),
    Column("agent_id", String(255), nullable=False),
    Column("stage", String(16), nullable=False),
    Column("first_choice", String(255), nullable=False),
    Column("second_choice", String(255), nullable=True),
    Column("third_choice", String(255), nullable=True),
    Column("rationale", Text, nullable=True),
    Column("nonce", String(64), nullable=False),
    Column("autonomy_score", Float, nullable=False),
    Column("verified", Boolean, nullable=False, server_default=text("true")),
    Column("revealed_at", DateTime(timezone=True), nullable=False),
    UniqueConstraint("election_id", "agent_id", "stage", name="uq_votes_voter_stage"),
)

tally_records = Table(
    "tally_records",
    metadata,
    Column("election_id", Uuid, ForeignKey("elections.id"), primary_key=True),
    Column("stage", String(16), primary_key=True),
    Column("result", JsonDocument, nullable=False),
    Column("recorded_at", DateTime(timezone=True), nullable=False),
)

primary_results = Table(
    "primary_results",
    metadata,
    Column("election_id", Uuid, ForeignKey("elections.id"), primary_key=True),
    Column("rank", Integer, primary_key=True),
    Column("candidate_id", String(255), nullable=False),
    Column("candidate_name", Text, nullable=False),
    Column("vote_count", Integer, nullable=False),
    Column("percentage", Float, nullable=False),
    Column("advanced_to_general", Boolean, nullable=False),
)
