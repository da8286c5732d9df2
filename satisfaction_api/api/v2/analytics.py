"""
Response Analytics Endpoints

- GET /analytics/responses - All answers grouped by survey
- GET /analytics/additional - Answers to the additional-analytics questions
"""

from fastapi import APIRouter

from satisfaction_api.api.deps import DbSession
from satisfaction_api.config import settings
from satisfaction_api.schemas.analytics import SurveyAnswers
from satisfaction_api.services import response_store
from satisfaction_api.services.analytics import group_by_survey

router = APIRouter()


@router.get("/responses", response_model=list[SurveyAnswers])
async def grouped_responses(db: DbSession):
    records = await response_store.load_records(db)
    return group_by_survey(records)


@router.get("/additional", response_model=list[SurveyAnswers])
async def additional_responses(db: DbSession):
    records = await response_store.load_records(
        db, question_ids=settings.ADDITIONAL_ANALYTICS_QUESTION_IDS,
    )
    return group_by_survey(records)
