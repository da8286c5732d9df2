"""
Survey Submission Flow

Glue between a SurveySession (pure domain state) and storage:

- resolving the contact step (stores contact details at most once)
- final submission, gated by the escalation policy and awaiting the
  atomic write of every answer
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from satisfaction_api.config import settings
from satisfaction_api.exceptions import BusinessRuleError, ConflictError, NotFoundError
from satisfaction_api.services import response_store
from satisfaction_api.services.escalation import ResolutionMethod
from satisfaction_api.services.scoring import CatalogQuestion
from satisfaction_api.services.survey_session import SessionRegistry, SurveySession

logger = logging.getLogger(__name__)

STATUS_SUBMITTED = "submitted"


@dataclass(frozen=True)
class SubmissionOutcome:
    survey_id: int
    status: str
    score: float
    requires_contact: bool
    responses_recorded: int = 0
    feedback_text: Optional[str] = None


async def open_session(db: AsyncSession, registry: SessionRegistry, survey_id: int) -> SurveySession:
    """Session for a survey that exists and has not been submitted yet."""
    try:
        survey = await response_store.get_survey(db, survey_id)
    except NotFoundError:
        registry.close(survey_id)
        raise
    if survey.submitted_at is not None:
        registry.close(survey_id)
        raise ConflictError(f"Survey {survey_id} has already been submitted")
    return registry.get_or_open(survey_id)


async def resolve_with_contact(
    db: AsyncSession,
    session: SurveySession,
    name: str,
    phone: str,
    email: str,
) -> bool:
    """
    Store the respondent's contact details and resolve the contact step.

    Only the first resolution stores anything; later calls return False.
    """
    if not session.can_resolve_contact():
        return False
    # Claim the transition before awaiting so overlapping requests see it
    session.resolve_contact(ResolutionMethod.CONTACT_PROVIDED)
    try:
        await response_store.add_contact(db, session.survey_id, name, phone, email)
    except Exception:
        session.reopen_contact()
        raise
    logger.info(f"Survey {session.survey_id}: contact details recorded")
    return True


def skip_contact(session: SurveySession) -> bool:
    resolved = session.resolve_contact(ResolutionMethod.SKIPPED)
    if resolved:
        logger.info(f"Survey {session.survey_id}: contact step skipped")
    return resolved


async def submit(
    db: AsyncSession,
    registry: SessionRegistry,
    session: SurveySession,
    catalog: Sequence[CatalogQuestion],
) -> SubmissionOutcome:
    """
    Final submission.

    Returns a contact_resolution_required outcome while the contact step is
    pending. Storage failures propagate as RetryableStorageError and leave
    the session open for a retry. A survey without a single answer, such as
    one whose session was lost, cannot be submitted.
    """
    if not session.has_answers:
        raise BusinessRuleError(f"Survey {session.survey_id} has no answers to submit")

    gate = session.submission_gate(catalog)
    output = session.escalation_output()
    if not gate.allowed:
        logger.info(f"Survey {session.survey_id}: submission blocked ({gate.reason})")
        return SubmissionOutcome(
            survey_id=session.survey_id,
            status=gate.reason,
            score=output.score,
            requires_contact=True,
        )

    if not session.begin_submission():
        raise ConflictError(f"Survey {session.survey_id} is already being submitted")

    responses = session.responses_for_storage()
    try:
        rows = await response_store.write_submission(db, session.survey_id, responses, output.score)
    except Exception:
        session.abort_submission()
        raise
    session.mark_submitted()
    registry.close(session.survey_id)

    feedback = next(
        (r for r in responses if r.question_id == settings.FEEDBACK_QUESTION_ID and r.is_answered),
        None,
    )
    return SubmissionOutcome(
        survey_id=session.survey_id,
        status=STATUS_SUBMITTED,
        score=output.score,
        requires_contact=False,
        responses_recorded=len(rows),
        feedback_text=str(feedback.answer) if feedback else None,
    )
