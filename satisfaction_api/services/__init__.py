# Services module
from satisfaction_api.services.survey_session import session_registry, SessionRegistry
from satisfaction_api.services.escalation import EscalationPolicy, EscalationPhase
from satisfaction_api.services.scoring import negative_score, negative_weight

__all__ = [
    "session_registry",
    "SessionRegistry",
    # Scoring and escalation
    "EscalationPolicy",
    "EscalationPhase",
    "negative_score",
    "negative_weight",
]
