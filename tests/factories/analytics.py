"""
Analytics record test factories.
"""

from datetime import datetime, timedelta

import factory
from faker import Faker

from satisfaction_api.services.analytics import AnalyticsRecord

fake = Faker()

BASE_TIME = datetime(2026, 3, 1, 9, 0, 0)


def sentiment_analysis(score: float, category: str = "neutral") -> dict:
    """Analyzer output shaped like the external NLP service reply."""
    return {
        "sentiment": {
            "score": score,
            "magnitude": abs(score) * 2,
            "category": category,
            "sentences": [],
        },
        "entities": [],
        "mainTopics": [],
        "categories": [],
    }


class AnalyticsRecordFactory(factory.Factory):
    """
    Factory for persisted answer rows.

    Usage:
        record = AnalyticsRecordFactory(survey_id=7, question_id=2)
    """

    class Meta:
        model = AnalyticsRecord

    id = factory.Sequence(lambda n: n + 1)
    survey_id = 1
    question_id = 1
    answer = factory.LazyFunction(lambda: str(fake.random_int(0, 10)))
    responded_at = factory.Sequence(lambda n: BASE_TIME + timedelta(minutes=n))
    optional_answer = None
    analysis = None


class FeedbackRecordFactory(AnalyticsRecordFactory):
    """Free-text feedback row carrying a sentiment analysis."""

    question_id = 10
    answer = factory.LazyFunction(lambda: fake.sentence())
    analysis = factory.LazyFunction(lambda: sentiment_analysis(0.0))
