"""
Survey Session Endpoints

- POST /surveys/ - Start a survey
- GET /surveys/{id} - Current answers, score and escalation phase
- PUT /surveys/{id}/answers/{question_id} - Record an answer, re-score
- POST /surveys/{id}/contact - Leave contact details (escalated surveys)
- POST /surveys/{id}/contact/skip - Decline to leave contact details
- POST /surveys/{id}/submit - Final submission
"""

import logging

from fastapi import APIRouter, BackgroundTasks, status

from satisfaction_api.api.deps import DbSession, SessionFactory, Registry, Analyzer
from satisfaction_api.schemas.survey import (
    SurveyStart, SurveyStartResponse, AnswerUpdate, AnswerState, EscalationResult,
    SurveySessionResponse, ContactDetails, ContactResolutionResponse, SubmissionResult,
)
from satisfaction_api.services import catalog_service, response_store, survey_service
from satisfaction_api.services.sentiment_service import analyze_feedback
from satisfaction_api.services.survey_session import UNSET, EscalationOutput, SurveySession

logger = logging.getLogger(__name__)
router = APIRouter()


def _escalation_result(output: EscalationOutput) -> EscalationResult:
    return EscalationResult(
        survey_id=output.survey_id,
        score=output.score,
        requires_contact=output.requires_contact,
        phase=output.phase,
    )


def _session_response(session: SurveySession) -> SurveySessionResponse:
    output = session.escalation_output()
    return SurveySessionResponse(
        **_escalation_result(output).model_dump(),
        answers=[
            AnswerState(
                question_id=response.question_id,
                answer=response.answer,
                optional_answer=response.optional_answer,
            )
            for response in session.responses_for_storage()
        ],
        submitted=session.submitted,
    )


@router.post("/", response_model=SurveyStartResponse, status_code=status.HTTP_201_CREATED)
async def start_survey(
    db: DbSession,
    registry: Registry,
    data: SurveyStart | None = None,
):
    """Create a survey row and open its session."""
    survey = await response_store.create_survey(db, data.name if data else None)
    registry.open(survey.id)
    logger.info(f"Started survey {survey.id}")
    return survey


@router.get("/{survey_id}", response_model=SurveySessionResponse)
async def get_survey_session(survey_id: int, db: DbSession, registry: Registry):
    session = await survey_service.open_session(db, registry, survey_id)
    return _session_response(session)


@router.put("/{survey_id}/answers/{question_id}", response_model=EscalationResult)
async def record_answer(
    survey_id: int,
    question_id: int,
    data: AnswerUpdate,
    db: DbSession,
    registry: Registry,
):
    """
    Record an answer and/or optional comment.

    The whole survey is re-scored and the escalation phase re-evaluated.
    """
    session = await survey_service.open_session(db, registry, survey_id)
    catalog = await catalog_service.load_catalog(db)

    output = session.record_answer(
        question_id,
        catalog,
        answer=data.answer if "answer" in data.model_fields_set else UNSET,
        optional_answer=data.optional_answer if "optional_answer" in data.model_fields_set else UNSET,
    )
    return _escalation_result(output)


@router.post("/{survey_id}/contact", response_model=ContactResolutionResponse)
async def provide_contact(
    survey_id: int,
    data: ContactDetails,
    db: DbSession,
    registry: Registry,
):
    """Resolve the contact step with the respondent's details."""
    session = await survey_service.open_session(db, registry, survey_id)
    resolved_now = await survey_service.resolve_with_contact(
        db, session, name=data.name, phone=data.phone, email=data.email,
    )
    return ContactResolutionResponse(
        survey_id=survey_id,
        phase=session.policy.phase,
        resolved_now=resolved_now,
    )


@router.post("/{survey_id}/contact/skip", response_model=ContactResolutionResponse)
async def skip_contact(survey_id: int, db: DbSession, registry: Registry):
    """Resolve the contact step without leaving details."""
    session = await survey_service.open_session(db, registry, survey_id)
    resolved_now = survey_service.skip_contact(session)
    return ContactResolutionResponse(
        survey_id=survey_id,
        phase=session.policy.phase,
        resolved_now=resolved_now,
    )


@router.post("/{survey_id}/submit", response_model=SubmissionResult)
async def submit_survey(
    survey_id: int,
    db: DbSession,
    registry: Registry,
    session_factory: SessionFactory,
    analyzer: Analyzer,
    background_tasks: BackgroundTasks,
):
    """
    Submit the survey.

    Returns status 'contact_resolution_required' while the contact step is
    pending. Feedback sentiment analysis runs after the response is sent.
    """
    session = await survey_service.open_session(db, registry, survey_id)
    catalog = await catalog_service.load_catalog(db)

    outcome = await survey_service.submit(db, registry, session, catalog)

    if outcome.feedback_text:
        background_tasks.add_task(
            analyze_feedback, session_factory, analyzer, survey_id, outcome.feedback_text,
        )

    return SubmissionResult(
        survey_id=outcome.survey_id,
        status=outcome.status,
        score=outcome.score,
        requires_contact=outcome.requires_contact,
        responses_recorded=outcome.responses_recorded,
    )
