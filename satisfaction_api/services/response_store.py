"""
Response storage.

Submission writes are all-or-nothing: every answer row of a survey and the
survey's stored score are committed together or not at all.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from satisfaction_api.exceptions import NotFoundError, RetryableStorageError
from satisfaction_api.models import Survey, SurveyAnswer, LowSatisfactionContact
from satisfaction_api.services.analytics import AnalyticsRecord
from satisfaction_api.services.scoring import Response

logger = logging.getLogger(__name__)


def _stored_answer(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


async def create_survey(db: AsyncSession, name: Optional[str] = None) -> Survey:
    survey = Survey(name=name or f"Survey {datetime.now(timezone.utc).isoformat()}")
    db.add(survey)
    await db.commit()
    await db.refresh(survey)
    return survey


async def get_survey(db: AsyncSession, survey_id: int) -> Survey:
    survey = await db.get(Survey, survey_id)
    if not survey:
        raise NotFoundError("Survey", survey_id)
    return survey


async def write_submission(
    db: AsyncSession,
    survey_id: int,
    responses: Sequence[Response],
    negative_score: float,
) -> List[SurveyAnswer]:
    """
    Persist a survey's answers and score in one transaction.

    Raises RetryableStorageError after rolling back if any write fails.
    """
    survey = await get_survey(db, survey_id)
    responded_at = datetime.now(timezone.utc)

    rows = [
        SurveyAnswer(
            survey_id=survey_id,
            question_id=response.question_id,
            answer=_stored_answer(response.answer),
            optional_answer=response.optional_answer or None,
            responded_at=responded_at,
        )
        for response in responses
    ]

    try:
        db.add_all(rows)
        survey.negative_score = negative_score
        survey.submitted_at = responded_at
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Submission of survey {survey_id} rolled back: {type(e).__name__}")
        raise RetryableStorageError(
            f"Responses for survey {survey_id} could not be recorded; nothing was saved"
        ) from e

    logger.info(f"Recorded {len(rows)} responses for survey {survey_id} (score={negative_score:.4f})")
    return rows


async def add_contact(
    db: AsyncSession,
    survey_id: int,
    name: str,
    phone: str,
    email: str,
) -> LowSatisfactionContact:
    contact = LowSatisfactionContact(survey_id=survey_id, name=name, phone=phone, email=email)
    try:
        db.add(contact)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Contact for survey {survey_id} not stored: {type(e).__name__}")
        raise RetryableStorageError(f"Contact details for survey {survey_id} could not be recorded") from e
    await db.refresh(contact)
    return contact


async def list_contacts(db: AsyncSession) -> List[LowSatisfactionContact]:
    result = await db.execute(
        select(LowSatisfactionContact).order_by(
            LowSatisfactionContact.created_at.desc(), LowSatisfactionContact.id.desc()
        )
    )
    return list(result.scalars().all())


async def load_records(
    db: AsyncSession,
    question_ids: Optional[Iterable[int]] = None,
    with_analysis_only: bool = False,
) -> List[AnalyticsRecord]:
    """Answer rows ordered by survey then question."""
    query = select(SurveyAnswer)
    if question_ids is not None:
        query = query.where(SurveyAnswer.question_id.in_(list(question_ids)))
    if with_analysis_only:
        query = query.where(SurveyAnswer.nlp_analysis.is_not(None))
    query = query.order_by(
        SurveyAnswer.survey_id, SurveyAnswer.question_id, SurveyAnswer.id
    ).execution_options(populate_existing=True)

    result = await db.execute(query)
    return [AnalyticsRecord.from_row(row) for row in result.scalars().all()]


async def attach_analysis(
    db: AsyncSession,
    survey_id: int,
    question_id: int,
    analysis: Dict[str, Any],
) -> int:
    """Set (overwrite) the analysis on a survey's feedback rows. Returns rows updated."""
    result = await db.execute(
        update(SurveyAnswer)
        .where(SurveyAnswer.survey_id == survey_id, SurveyAnswer.question_id == question_id)
        .values(nlp_analysis=analysis)
    )
    await db.commit()
    return result.rowcount or 0


async def load_comments(db: AsyncSession, feedback_question_id: int) -> List[SurveyAnswer]:
    """Non-empty optional comments, excluding the free-text feedback question."""
    result = await db.execute(
        select(SurveyAnswer)
        .where(
            SurveyAnswer.optional_answer.is_not(None),
            SurveyAnswer.optional_answer != "",
            SurveyAnswer.question_id != feedback_question_id,
        )
        .order_by(SurveyAnswer.survey_id, SurveyAnswer.question_id)
    )
    return list(result.scalars().all())
