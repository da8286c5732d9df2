"""
Question Catalog Endpoints

- GET /questions/ - Catalog in id order
- POST /questions/update - All-or-nothing create/update of questions
- DELETE /questions/{id} - Remove a question whose importance is 0
"""

from fastapi import APIRouter, status

from satisfaction_api.api.deps import DbSession
from satisfaction_api.schemas.question import (
    QuestionCatalogEdit, QuestionCatalogResponse, QuestionResponse,
)
from satisfaction_api.services import catalog_service

router = APIRouter()


def _catalog_response(questions) -> QuestionCatalogResponse:
    items = [QuestionResponse.model_validate(question) for question in questions]
    return QuestionCatalogResponse(
        items=items,
        total_importance=round(sum(item.importance for item in items), 2),
    )


@router.get("/", response_model=QuestionCatalogResponse)
async def list_questions(db: DbSession):
    return _catalog_response(await catalog_service.list_questions(db))


@router.post("/update", response_model=QuestionCatalogResponse)
async def update_questions(data: QuestionCatalogEdit, db: DbSession):
    """Apply a catalog edit. Rejected as a whole when the catalog would be invalid."""
    questions = await catalog_service.apply_catalog_edit(db, data.questions)
    return _catalog_response(questions)


@router.delete("/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_question(question_id: int, db: DbSession):
    await catalog_service.delete_question(db, question_id)
