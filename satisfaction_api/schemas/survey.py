"""
Survey session schemas
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, Union

from satisfaction_api.services.escalation import EscalationPhase

AnswerValue = Union[int, str]


class SurveyStart(BaseModel):
    name: Optional[str] = Field(None, max_length=255)


class SurveyStartResponse(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AnswerUpdate(BaseModel):
    """Answer change. Fields left out keep their current value."""
    answer: Optional[AnswerValue] = None
    optional_answer: Optional[str] = None


class EscalationResult(BaseModel):
    survey_id: int
    score: float
    requires_contact: bool
    phase: EscalationPhase


class AnswerState(BaseModel):
    question_id: int
    answer: Optional[AnswerValue] = None
    optional_answer: Optional[str] = None


class SurveySessionResponse(EscalationResult):
    answers: list[AnswerState] = []
    submitted: bool = False


class ContactDetails(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: str = Field(..., min_length=1, max_length=20)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")


class ContactResolutionResponse(BaseModel):
    survey_id: int
    phase: EscalationPhase
    resolved_now: bool


class SubmissionResult(BaseModel):
    survey_id: int
    status: str  # 'submitted' or 'contact_resolution_required'
    score: float
    requires_contact: bool
    responses_recorded: int = 0


class ScoringRequest(BaseModel):
    responses: list[AnswerState] = []
    threshold: Optional[float] = Field(None, ge=0, le=1)


class ScoringResult(BaseModel):
    score: float
    requires_contact: bool
    threshold: float
