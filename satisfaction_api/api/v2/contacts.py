"""
Follow-up Endpoints

- GET /comments - Optional comments left on scored questions
- GET /low-satisfaction - Contact details from escalated surveys, newest first
"""

from fastapi import APIRouter

from satisfaction_api.api.deps import DbSession
from satisfaction_api.config import settings
from satisfaction_api.schemas.analytics import CommentItem, LowSatisfactionContactResponse
from satisfaction_api.services import response_store

router = APIRouter()


@router.get("/comments", response_model=list[CommentItem])
async def list_comments(db: DbSession):
    return await response_store.load_comments(db, settings.FEEDBACK_QUESTION_ID)


@router.get("/low-satisfaction", response_model=list[LowSatisfactionContactResponse])
async def list_low_satisfaction_contacts(db: DbSession):
    return await response_store.list_contacts(db)
