"""Bootstrap wiring for the election services.

Storage is SQL when DATABASE_URL is set and the in-memory stub otherwise.
Each getter builds its instance once; ``reset_services`` clears them.
"""

from __future__ import annotations

from structlog import get_logger

from electorate.application.ports.agent_repository import AgentRepositoryProtocol
from electorate.application.ports.ballot_repository import BallotRepositoryProtocol
from electorate.application.ports.candidate_repository import (
    CandidateRepositoryProtocol,
)
from electorate.application.ports.election_repository import (
    ElectionRepositoryProtocol,
)
from electorate.application.ports.reputation_lookup import ReputationLookupProtocol
from electorate.application.ports.time_authority import TimeAuthorityProtocol
from electorate.application.services import (
    CandidacyService,
    CommitRevealService,
    ElectionAdminService,
    PhaseMachineService,
    RegistrationService,
    ResultsService,
)
from electorate.bootstrap.database import database_configured, get_session_factory
from electorate.config import ElectionConfig
from electorate.domain.models.tally import TallyOptions
from electorate.infrastructure.adapters.persistence import (
    AgentRepositoryView,
    CandidateRepositoryView,
    SqlElectionStore,
)
from electorate.infrastructure.adapters.reputation import HttpReputationLookup
from electorate.infrastructure.adapters.time import SystemTimeAuthority
from electorate.infrastructure.stubs import ElectionStoreStub

logger = get_logger(__name__)

_config: ElectionConfig | None = None
_store: SqlElectionStore | ElectionStoreStub | None = None
_time_authority: TimeAuthorityProtocol | None = None
_reputation: ReputationLookupProtocol | None = None
_phase_machine: PhaseMachineService | None = None


def get_election_config() -> ElectionConfig:
    global _config
    if _config is None:
        _config = ElectionConfig.from_environment()
    return _config


def get_time_authority() -> TimeAuthorityProtocol:
    global _time_authority
    if _time_authority is None:
        _time_authority = SystemTimeAuthority()
    return _time_authority


def _get_store() -> SqlElectionStore | ElectionStoreStub:
    global _store
    if _store is None:
        if database_configured():
            _store = SqlElectionStore(get_session_factory())
            logger.info("election_store_selected", backend="sql")
        else:
            _store = ElectionStoreStub()
            logger.warning("election_store_selected", backend="in_memory")
    return _store


def get_election_repository() -> ElectionRepositoryProtocol:
    return _get_store()


def get_ballot_repository() -> BallotRepositoryProtocol:
    return _get_store()


def get_agent_repository() -> AgentRepositoryProtocol:
    return AgentRepositoryView(_get_store())


def get_candidate_repository() -> CandidateRepositoryProtocol:
    return CandidateRepositoryView(_get_store())


def get_reputation_lookup() -> ReputationLookupProtocol:
    global _reputation
    if _reputation is None:
        config = get_election_config()
        _reputation = HttpReputationLookup(
            base_url=config.reputation_base_url,
            time_authority=get_time_authority(),
            timeout_seconds=config.reputation_timeout_seconds,
        )
    return _reputation


def get_phase_machine_service() -> PhaseMachineService:
    global _phase_machine
    if _phase_machine is None:
        _phase_machine = PhaseMachineService(
            election_repo=get_election_repository(),
            candidate_repo=get_candidate_repository(),
            ballot_repo=get_ballot_repository(),
            time_authority=get_time_authority(),
            tally_options=TallyOptions(
                use_weighting=get_election_config().use_vote_weighting
            ),
        )
    return _phase_machine


def get_election_admin_service() -> ElectionAdminService:
    return ElectionAdminService(
        election_repo=get_election_repository(),
        config=get_election_config(),
        time_authority=get_time_authority(),
    )


def get_registration_service() -> RegistrationService:
    return RegistrationService(
        agent_repo=get_agent_repository(),
        reputation=get_reputation_lookup(),
        time_authority=get_time_authority(),
    )


def get_candidacy_service() -> CandidacyService:
    return CandidacyService(
        phase_machine=get_phase_machine_service(),
        agent_repo=get_agent_repository(),
        candidate_repo=get_candidate_repository(),
        time_authority=get_time_authority(),
        endorsement_threshold=get_election_config().endorsement_threshold,
    )


def get_commit_reveal_service() -> CommitRevealService:
    return CommitRevealService(
        phase_machine=get_phase_machine_service(),
        agent_repo=get_agent_repository(),
        candidate_repo=get_candidate_repository(),
        ballot_repo=get_ballot_repository(),
        time_authority=get_time_authority(),
    )


def get_results_service() -> ResultsService:
    return ResultsService(
        phase_machine=get_phase_machine_service(),
        election_repo=get_election_repository(),
        ballot_repo=get_ballot_repository(),
        agent_repo=get_agent_repository(),
        candidate_repo=get_candidate_repository(),
    )


def reset_services() -> None:
    """Reset service singletons for testing."""
    global _config, _store, _time_authority, _reputation, _phase_machine
    _config = None
    _store = None
    _time_authority = None
    _reputation = None
    _phase_machine = None
