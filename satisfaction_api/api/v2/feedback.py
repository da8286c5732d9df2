"""
Feedback Sentiment Endpoints

- GET /feedback/analysis - Latest analysed feedback per survey, newest first
- POST /feedback/analyze - Attach (overwrite) an analysis to a survey's feedback
- GET /feedback/sentiment-summary - Positive / neutral / negative breakdown
"""

import logging

from fastapi import APIRouter

from satisfaction_api.api.deps import DbSession
from satisfaction_api.config import settings
from satisfaction_api.exceptions import NotFoundError
from satisfaction_api.schemas.analytics import (
    FeedbackAnalysisItem, FeedbackAnalyzeRequest, FeedbackAnalyzeResponse, SentimentSummary,
)
from satisfaction_api.services import response_store
from satisfaction_api.services.analytics import dedupe_feedback, sentiment_summary

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/analysis", response_model=list[FeedbackAnalysisItem])
async def feedback_analysis(db: DbSession):
    records = await response_store.load_records(
        db,
        question_ids=[settings.FEEDBACK_QUESTION_ID],
        with_analysis_only=True,
    )
    unique = dedupe_feedback(records, feedback_question_id=settings.FEEDBACK_QUESTION_ID)
    logger.debug(f"Feedback analysis: {len(records)} rows, {len(unique)} unique surveys")

    return [
        FeedbackAnalysisItem(
            id=record.id,
            survey_id=record.survey_id,
            original_text=record.answer or "",
            analysis=record.analysis,
            timestamp=record.responded_at,
        )
        for record in unique
    ]


@router.post("/analyze", response_model=FeedbackAnalyzeResponse)
async def attach_feedback_analysis(data: FeedbackAnalyzeRequest, db: DbSession):
    updated = await response_store.attach_analysis(
        db, data.survey_id, settings.FEEDBACK_QUESTION_ID, data.analysis,
    )
    if not updated:
        raise NotFoundError("Feedback response for survey", data.survey_id)
    return FeedbackAnalyzeResponse(survey_id=data.survey_id, updated=updated)


@router.get("/sentiment-summary", response_model=SentimentSummary)
async def feedback_sentiment_summary(db: DbSession):
    records = await response_store.load_records(
        db,
        question_ids=[settings.FEEDBACK_QUESTION_ID],
        with_analysis_only=True,
    )
    return sentiment_summary(records)
