"""
Analytics and feedback schemas
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, Any


class GroupedAnswer(BaseModel):
    question_id: int
    answer: Optional[str] = None
    responded_at: Optional[datetime] = None


class SurveyAnswers(BaseModel):
    survey_id: int
    responses: list[GroupedAnswer]


class FeedbackAnalysisItem(BaseModel):
    id: Optional[int] = None
    survey_id: int
    original_text: str = ""
    analysis: dict[str, Any]
    timestamp: Optional[datetime] = None


class FeedbackAnalyzeRequest(BaseModel):
    """Analyzer output to attach to a survey's feedback answer."""
    survey_id: int = Field(..., ge=1)
    analysis: dict[str, Any]


class FeedbackAnalyzeResponse(BaseModel):
    survey_id: int
    updated: int


class SentimentSummary(BaseModel):
    total_feedback: int
    positive_count: int
    neutral_count: int
    negative_count: int
    avg_sentiment: Optional[float] = None


class CommentItem(BaseModel):
    survey_id: int
    question_id: int
    answer: Optional[str] = None
    optional_answer: str

    class Config:
        from_attributes = True


class LowSatisfactionContactResponse(BaseModel):
    id: int
    survey_id: int
    name: str
    phone: str
    email: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
