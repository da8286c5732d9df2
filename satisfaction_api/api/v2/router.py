from fastapi import APIRouter
from satisfaction_api.api.v2 import (
    surveys,
    scoring,
    questions,
    analytics,
    feedback,
    contacts,
)

api_router = APIRouter()

api_router.include_router(surveys.router, prefix="/surveys", tags=["surveys"])
api_router.include_router(scoring.router, prefix="/scoring", tags=["scoring"])
api_router.include_router(questions.router, prefix="/questions", tags=["questions"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
api_router.include_router(feedback.router, prefix="/feedback", tags=["feedback"])
api_router.include_router(contacts.router, tags=["contacts"])
