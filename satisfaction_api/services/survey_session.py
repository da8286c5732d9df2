"""
Survey sessions.

A SurveySession is the single writer of one survey's answers until final
submission. Every answer change triggers a full score recompute over an
immutable snapshot of the answers and the catalog, then re-evaluates the
escalation policy.
"""

import logging
import time
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, Optional, Sequence

from satisfaction_api.config import settings
from satisfaction_api.services.escalation import (
    EscalationPolicy, EscalationPhase, ResolutionMethod, SubmissionGate,
)
from satisfaction_api.services.scoring import CatalogQuestion, Response, negative_score

logger = logging.getLogger(__name__)

UNSET: Any = object()


@dataclass(frozen=True)
class EscalationOutput:
    """What the submission flow needs to decide on the contact step."""
    survey_id: int
    score: float
    requires_contact: bool
    phase: EscalationPhase


@dataclass
class SurveyState:
    survey_id: int
    responses: Dict[int, Response] = field(default_factory=dict)
    negative_score: float = 0.0
    submitted: bool = False
    submitting: bool = False


class SurveySession:
    """Domain state of one in-progress survey."""

    def __init__(self, survey_id: int, threshold: Optional[float] = None):
        self.state = SurveyState(survey_id=survey_id)
        self.policy = EscalationPolicy(threshold)

    @property
    def survey_id(self) -> int:
        return self.state.survey_id

    @property
    def submitted(self) -> bool:
        return self.state.submitted

    def snapshot(self) -> MappingProxyType:
        """Read-only copy of the current answers."""
        return MappingProxyType(dict(self.state.responses))

    def record_answer(
        self,
        question_id: int,
        catalog: Sequence[CatalogQuestion],
        answer: Any = UNSET,
        optional_answer: Any = UNSET,
    ) -> EscalationOutput:
        """
        Set the answer and/or optional comment for a question.

        Omitted fields keep their previous value.
        """
        current = self.state.responses.get(question_id, Response(question_id=question_id))
        changes = {}
        if answer is not UNSET:
            changes["answer"] = answer
        if optional_answer is not UNSET:
            changes["optional_answer"] = optional_answer
        self.state.responses[question_id] = replace(current, **changes)

        return self.evaluate(catalog)

    def evaluate(self, catalog: Sequence[CatalogQuestion]) -> EscalationOutput:
        score = negative_score(self.snapshot(), tuple(catalog))
        self.state.negative_score = score
        phase = self.policy.evaluate(score)
        logger.debug(f"Survey {self.survey_id}: negative score {score:.4f} -> {phase.value}")
        return self.escalation_output()

    def escalation_output(self) -> EscalationOutput:
        return EscalationOutput(
            survey_id=self.survey_id,
            score=self.state.negative_score,
            requires_contact=self.policy.requires_contact,
            phase=self.policy.phase,
        )

    def can_resolve_contact(self) -> bool:
        return not self.submitted and not self.state.submitting and self.policy.can_resolve()

    def resolve_contact(self, method: ResolutionMethod) -> bool:
        if self.submitted or self.state.submitting:
            return False
        return self.policy.resolve(method)

    def reopen_contact(self) -> None:
        """Undo a contact resolution whose storage write failed."""
        self.policy.reopen()

    def submission_gate(self, catalog: Sequence[CatalogQuestion]) -> SubmissionGate:
        if self.policy.phase == EscalationPhase.NOT_EVALUATED:
            self.evaluate(catalog)
        return self.policy.check_submission()

    @property
    def has_answers(self) -> bool:
        return any(response.is_answered for response in self.state.responses.values())

    def responses_for_storage(self) -> list[Response]:
        return [self.state.responses[qid] for qid in sorted(self.state.responses)]

    def begin_submission(self) -> bool:
        """Claim the session for one submission write. False when already claimed."""
        if self.submitted or self.state.submitting:
            return False
        self.state.submitting = True
        return True

    def abort_submission(self) -> None:
        self.state.submitting = False

    def mark_submitted(self) -> None:
        self.state.submitted = True
        self.state.submitting = False


class SessionRegistry:
    """
    In-process registry of open survey sessions, keyed by survey id.

    Sessions not touched for idle_timeout seconds are dropped the next time
    the registry is used.
    """

    def __init__(
        self,
        threshold: Optional[float] = None,
        idle_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.threshold = threshold
        self.idle_timeout = settings.SESSION_IDLE_TIMEOUT_SECONDS if idle_timeout is None else idle_timeout
        self._clock = clock
        self._sessions: Dict[int, SurveySession] = {}
        self._last_seen: Dict[int, float] = {}

    def evict_idle(self) -> int:
        """Drop idle sessions. Returns how many were dropped."""
        cutoff = self._clock() - self.idle_timeout
        idle = [
            survey_id for survey_id, seen in self._last_seen.items()
            if seen < cutoff and not self._sessions[survey_id].state.submitting
        ]
        for survey_id in idle:
            self.close(survey_id)
        if idle:
            logger.info(f"Evicted {len(idle)} idle survey session(s)")
        return len(idle)

    def open(self, survey_id: int) -> SurveySession:
        self.evict_idle()
        session = SurveySession(survey_id, threshold=self.threshold)
        self._sessions[survey_id] = session
        self._last_seen[survey_id] = self._clock()
        return session

    def get(self, survey_id: int) -> Optional[SurveySession]:
        self.evict_idle()
        session = self._sessions.get(survey_id)
        if session is not None:
            self._last_seen[survey_id] = self._clock()
        return session

    def get_or_open(self, survey_id: int) -> SurveySession:
        return self.get(survey_id) or self.open(survey_id)

    def close(self, survey_id: int) -> None:
        self._sessions.pop(survey_id, None)
        self._last_seen.pop(survey_id, None)

    def __len__(self) -> int:
        return len(self._sessions)


session_registry = SessionRegistry()


def get_session_registry() -> SessionRegistry:
    """Dependency returning the process-wide session registry."""
    return session_registry
