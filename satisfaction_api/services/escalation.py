"""
Escalation Policy

Decides whether a survey needs the contact-collection step before it can be
submitted:

    NOT_EVALUATED -> PENDING_CONTACT | CLEAR -> RESOLVED

The phase is re-derived from the score on every answer change until the
contact step is resolved. RESOLVED is terminal.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from satisfaction_api.config import settings

logger = logging.getLogger(__name__)


class EscalationPhase(str, Enum):
    NOT_EVALUATED = "not_evaluated"
    PENDING_CONTACT = "pending_contact"
    CLEAR = "clear"
    RESOLVED = "resolved"


class ResolutionMethod(str, Enum):
    CONTACT_PROVIDED = "contact_provided"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SubmissionGate:
    """Outcome of asking whether a survey may be submitted now."""
    allowed: bool
    reason: Optional[str] = None


CONTACT_RESOLUTION_REQUIRED = "contact_resolution_required"


class EscalationPolicy:
    """Escalation state for one survey session."""

    def __init__(self, threshold: Optional[float] = None):
        self.threshold = settings.NEGATIVE_SCORE_THRESHOLD if threshold is None else threshold
        self.phase = EscalationPhase.NOT_EVALUATED
        self.score: Optional[float] = None
        self.resolution: Optional[ResolutionMethod] = None

    @property
    def requires_contact(self) -> bool:
        return self.phase == EscalationPhase.PENDING_CONTACT

    @property
    def is_resolved(self) -> bool:
        return self.phase == EscalationPhase.RESOLVED

    def evaluate(self, score: float) -> EscalationPhase:
        """Record a freshly computed score and move to the matching phase."""
        self.score = score
        if self.phase == EscalationPhase.RESOLVED:
            return self.phase

        # At the threshold counts as negative
        if score >= self.threshold:
            self.phase = EscalationPhase.PENDING_CONTACT
        else:
            self.phase = EscalationPhase.CLEAR
        return self.phase

    def can_resolve(self) -> bool:
        return self.phase == EscalationPhase.PENDING_CONTACT

    def resolve(self, method: ResolutionMethod) -> bool:
        """
        Resolve the contact step.

        Returns True when this call performed the transition. Calls made
        after resolution, or while no contact is pending, change nothing.
        """
        if not self.can_resolve():
            logger.debug(f"Ignoring {method.value} resolution in phase {self.phase.value}")
            return False
        self.phase = EscalationPhase.RESOLVED
        self.resolution = method
        return True

    def reopen(self) -> None:
        """Return a resolved policy to PENDING_CONTACT."""
        if self.phase == EscalationPhase.RESOLVED:
            self.phase = EscalationPhase.PENDING_CONTACT
            self.resolution = None

    def check_submission(self) -> SubmissionGate:
        if self.phase == EscalationPhase.PENDING_CONTACT:
            return SubmissionGate(allowed=False, reason=CONTACT_RESOLUTION_REQUIRED)
        return SubmissionGate(allowed=True)
