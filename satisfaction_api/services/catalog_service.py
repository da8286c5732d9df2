"""
Question Catalog Service

Loads the catalog for scoring and applies catalog edits. An edit is checked
against the whole candidate catalog (existing questions with the edit laid
over them) before anything is written; one bad question rejects the lot.
"""

import logging
import math
from typing import Any, Dict, List, Sequence, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from satisfaction_api.config import settings
from satisfaction_api.exceptions import (
    BusinessRuleError, ErrorCode, NotFoundError, RetryableStorageError, ValidationError,
)
from satisfaction_api.models import Question
from satisfaction_api.schemas.question import QuestionUpsert
from satisfaction_api.services.scoring import CatalogQuestion, QuestionKind, MAX_IMPORTANCE

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("question_text", "question_type", "max_value", "category", "importance", "options")


def _field_error(question_id: Any, field: str, message: str, error_type: str) -> Dict[str, Any]:
    return {
        "field": f"questions.{question_id}.{field}",
        "message": message,
        "type": error_type,
    }


def _importance_value(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        importance = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(importance) or not 0.0 <= importance <= MAX_IMPORTANCE:
        return None
    return importance


def validate_catalog(candidates: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Check a full candidate catalog.

    Returns a list of field errors; empty when the catalog may be committed.
    """
    errors: List[Dict[str, Any]] = []
    total = 0.0

    for question in candidates:
        qid = question["id"]
        qtype = question.get("question_type")
        qtype = qtype.value if isinstance(qtype, QuestionKind) else qtype

        importance = _importance_value(question.get("importance"))
        if importance is None:
            errors.append(_field_error(
                qid, "importance",
                f"Importance must be a number between 0 and {MAX_IMPORTANCE:g}, got {question.get('importance')!r}",
                "out_of_range",
            ))
        else:
            total += importance

        if qtype in (QuestionKind.RATING.value, QuestionKind.STARS.value):
            max_value = question.get("max_value")
            if isinstance(max_value, bool) or not isinstance(max_value, int) or max_value < 1:
                errors.append(_field_error(qid, "max_value", f"{qtype} questions need a positive max_value", "missing"))
        elif qtype == QuestionKind.CHOICE.value:
            options = question.get("options") or []
            if not options or any(not str(option).strip() for option in options):
                errors.append(_field_error(qid, "options", "choice questions need non-empty options", "missing"))
        elif qtype != QuestionKind.TEXT.value:
            errors.append(_field_error(qid, "question_type", f"Unknown question type {qtype!r}", "invalid"))

    expected = settings.IMPORTANCE_TOTAL
    if candidates and abs(total - expected) > settings.IMPORTANCE_TOLERANCE:
        errors.append({
            "field": "questions.importance",
            "message": f"Importances must add up to {expected:g} (±{settings.IMPORTANCE_TOLERANCE:g}), got {total:.2f}",
            "type": "sum_mismatch",
        })

    return errors


async def list_questions(db: AsyncSession) -> List[Question]:
    result = await db.execute(select(Question).order_by(Question.id))
    return list(result.scalars().all())


async def load_catalog(db: AsyncSession) -> Tuple[CatalogQuestion, ...]:
    """Read-only snapshot of the catalog for one scoring call."""
    return tuple(CatalogQuestion.from_model(question) for question in await list_questions(db))


def _as_candidate(question: Question) -> Dict[str, Any]:
    candidate = {"id": question.id}
    for field in EDITABLE_FIELDS:
        candidate[field] = getattr(question, field)
    return candidate


async def apply_catalog_edit(db: AsyncSession, edits: Sequence[QuestionUpsert]) -> List[Question]:
    """
    Create or update questions as a single unit.

    Raises ValidationError, with nothing written, when the resulting catalog
    breaks a rule.
    """
    seen = set()
    duplicates = set()
    for edit in edits:
        if edit.id in seen:
            duplicates.add(edit.id)
        seen.add(edit.id)
    if duplicates:
        raise ValidationError(
            "Question catalog edit rejected",
            errors=[_field_error(qid, "id", "Question id appears more than once", "duplicate") for qid in sorted(duplicates)],
        )

    existing = {question.id: question for question in await list_questions(db)}
    candidates = {qid: _as_candidate(question) for qid, question in existing.items()}
    for edit in edits:
        candidates[edit.id] = edit.model_dump(include={"id", *EDITABLE_FIELDS}, mode="json")

    errors = validate_catalog([candidates[qid] for qid in sorted(candidates)])
    if errors:
        logger.info(f"Catalog edit rejected with {len(errors)} error(s)")
        raise ValidationError(
            "Question catalog edit rejected",
            errors=errors,
            code=ErrorCode.CATALOG_INVARIANT,
        )

    try:
        for edit in edits:
            values = candidates[edit.id]
            values["importance"] = float(values["importance"])
            question = existing.get(edit.id)
            if question is None:
                db.add(Question(**values))
            else:
                for field in EDITABLE_FIELDS:
                    setattr(question, field, values[field])
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Catalog edit rolled back: {type(e).__name__}")
        raise RetryableStorageError("Question catalog could not be updated; nothing was saved") from e

    logger.info(f"Catalog edit applied to {len(edits)} question(s)")
    return await list_questions(db)


async def delete_question(db: AsyncSession, question_id: int) -> None:
    """
    Remove a question from the catalog.

    Only questions whose importance has already been moved elsewhere (0) can
    go, so the remaining catalog still adds up.
    """
    question = await db.get(Question, question_id)
    if not question:
        raise NotFoundError("Question", question_id)

    importance = _importance_value(question.importance) or 0.0
    if importance > settings.IMPORTANCE_TOLERANCE:
        raise BusinessRuleError(
            f"Question {question_id} still carries {importance:.2f}% importance; "
            "reassign it to other questions before deleting"
        )

    try:
        await db.delete(question)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        raise RetryableStorageError(f"Question {question_id} could not be deleted") from e
    logger.info(f"Deleted question {question_id}")
