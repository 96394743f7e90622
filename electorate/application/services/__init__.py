"""Application services: the election workflows built on the domain core."""

from electorate.application.services.candidacy_service import CandidacyService
from electorate.application.services.commit_reveal_service import (
    EVALUATION_INSTRUCTIONS,
    CommitRevealService,
    EvaluationPacket,
    VoterRollEntry,
)
from electorate.application.services.election_admin_service import (
    ElectionAdminService,
)
from electorate.application.services.phase_machine_service import (
    PhaseMachineService,
)
from electorate.application.services.registration_service import (
    GENERAL_AGENT_PREFIX,
    RegistrationResult,
    RegistrationService,
)
from electorate.application.services.results_service import (
    AUDIT_INSTRUCTIONS,
    AuditTrail,
    ResultsService,
)

__all__ = [
    "AUDIT_INSTRUCTIONS",
    "AuditTrail",
    "CandidacyService",
    "CommitRevealService",
    "EVALUATION_INSTRUCTIONS",
    "ElectionAdminService",
    "EvaluationPacket",
    "GENERAL_AGENT_PREFIX",
    "PhaseMachineService",
    "RegistrationResult",
    "RegistrationService",
    "ResultsService",
    "VoterRollEntry",
]
