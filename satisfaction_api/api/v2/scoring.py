"""
Stateless scoring endpoint.

Scores a full set of answers against the current catalog without opening a
survey session.
"""

from fastapi import APIRouter

from satisfaction_api.api.deps import DbSession
from satisfaction_api.config import settings
from satisfaction_api.schemas.survey import ScoringRequest, ScoringResult
from satisfaction_api.services import catalog_service
from satisfaction_api.services.scoring import Response, negative_score

router = APIRouter()


@router.post("/evaluate", response_model=ScoringResult)
async def evaluate(data: ScoringRequest, db: DbSession):
    catalog = await catalog_service.load_catalog(db)
    responses = {
        item.question_id: Response(
            question_id=item.question_id,
            answer=item.answer,
            optional_answer=item.optional_answer,
        )
        for item in data.responses
    }
    threshold = settings.NEGATIVE_SCORE_THRESHOLD if data.threshold is None else data.threshold
    score = negative_score(responses, catalog)
    return ScoringResult(score=score, requires_contact=score >= threshold, threshold=threshold)
