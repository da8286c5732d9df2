"""
Test factories for generating realistic test data.

Uses factory_boy for declarative test data generation.
"""

from .question import (
    QuestionFactory,
    RatingQuestionFactory,
    StarsQuestionFactory,
    ChoiceQuestionFactory,
    TextQuestionFactory,
    CatalogQuestionFactory,
    standard_catalog,
)
from .analytics import (
    AnalyticsRecordFactory,
    FeedbackRecordFactory,
    sentiment_analysis,
)

__all__ = [
    "QuestionFactory",
    "RatingQuestionFactory",
    "StarsQuestionFactory",
    "ChoiceQuestionFactory",
    "TextQuestionFactory",
    "CatalogQuestionFactory",
    "standard_catalog",
    "AnalyticsRecordFactory",
    "FeedbackRecordFactory",
    "sentiment_analysis",
]
