"""
Question catalog schemas
"""

from pydantic import BaseModel, Field, AliasChoices, field_serializer, field_validator
from datetime import datetime
from typing import Optional, Any

from satisfaction_api.services.scoring import QuestionKind, coerce_importance, parse_options


QuestionType = QuestionKind


class QuestionUpsert(BaseModel):
    """One question of a catalog edit. Creates the question when the id is new."""
    id: int = Field(..., ge=1)
    question_text: str = Field(..., min_length=1)
    question_type: QuestionType
    max_value: Optional[int] = None
    category: Optional[str] = Field(None, validation_alias=AliasChoices("category", "class"))
    # Range and total are checked across the whole candidate catalog
    importance: Any = 0
    options: Optional[list[str]] = None


class QuestionCatalogEdit(BaseModel):
    """Catalog edit, applied all-or-nothing."""
    questions: list[QuestionUpsert] = Field(..., min_length=1)


class QuestionResponse(BaseModel):
    """Question as listed in the catalog."""
    id: int
    question_text: str
    question_type: str
    max_value: Optional[int] = None
    category: Optional[str] = None
    importance: float = 0.0
    options: list[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("options", mode="before")
    @classmethod
    def normalize_options(cls, v: Any) -> list[str]:
        return parse_options(v) or []

    @field_validator("importance", mode="before")
    @classmethod
    def normalize_importance(cls, v: Any) -> float:
        return coerce_importance(v)

    @field_serializer("importance")
    def round_importance(self, importance: float) -> float:
        return round(importance, 2)

    class Config:
        from_attributes = True


class QuestionCatalogResponse(BaseModel):
    items: list[QuestionResponse]
    total_importance: float
