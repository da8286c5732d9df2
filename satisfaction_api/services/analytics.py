"""
Survey Analytics Aggregation

Read-only reporting over persisted answer rows:

- group_by_survey(): answers grouped per survey for the dashboards
- dedupe_feedback(): one analysed feedback row per survey, newest wins
- sentiment_summary(): positive / neutral / negative counts and mean score

Sentiment analyses are opaque analyzer output; only sentiment.score is read.
"""

import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

POSITIVE_SENTIMENT_CUTOFF = 0.2
NEGATIVE_SENTIMENT_CUTOFF = -0.2


@dataclass(frozen=True)
class AnalyticsRecord:
    """Immutable view of one persisted answer row."""
    id: Optional[int]
    survey_id: int
    question_id: int
    answer: Any
    responded_at: Optional[datetime]
    optional_answer: Optional[str] = None
    analysis: Optional[Dict[str, Any]] = None

    @classmethod
    def from_row(cls, row) -> "AnalyticsRecord":
        return cls(
            id=row.id,
            survey_id=row.survey_id,
            question_id=row.question_id,
            answer=row.answer,
            responded_at=row.responded_at,
            optional_answer=row.optional_answer,
            analysis=_decode_analysis(row.nlp_analysis, row.id),
        )


def _decode_analysis(raw: Any, record_id: Optional[int] = None) -> Optional[Dict[str, Any]]:
    """Analyses may come back from storage as JSON text."""
    if raw is None or isinstance(raw, dict):
        return raw
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except ValueError:
            logger.error(f"Unparseable sentiment analysis on response {record_id}")
            return None
        return decoded if isinstance(decoded, dict) else None
    return None


def _recency_key(record: AnalyticsRecord):
    # Rows without a timestamp sort as the oldest
    if record.responded_at is None:
        return (0, datetime.min)
    return (1, record.responded_at)


def sentiment_score(record: AnalyticsRecord) -> Optional[float]:
    """The analyzer's sentiment.score, or None when absent or not numeric."""
    if not record.analysis:
        return None
    sentiment = record.analysis.get("sentiment")
    if not isinstance(sentiment, dict):
        return None
    score = sentiment.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return None
    if not math.isfinite(score):
        return None
    return float(score)


def group_by_survey(records: Iterable[AnalyticsRecord]) -> List[Dict[str, Any]]:
    """
    Group answer rows by survey.

    Surveys keep the order in which they are first seen; answers inside a
    survey are ordered by question id (stable for repeated question ids).
    """
    groups: Dict[int, List[AnalyticsRecord]] = {}
    for record in records:
        groups.setdefault(record.survey_id, []).append(record)

    return [
        {
            "survey_id": survey_id,
            "responses": [
                {
                    "question_id": record.question_id,
                    "answer": record.answer,
                    "responded_at": record.responded_at,
                }
                for record in sorted(rows, key=lambda r: r.question_id)
            ],
        }
        for survey_id, rows in groups.items()
    ]


def dedupe_feedback(
    records: Iterable[AnalyticsRecord],
    feedback_question_id: Optional[int] = None,
) -> List[AnalyticsRecord]:
    """
    Keep exactly one analysed feedback record per survey.

    The most recent responded_at wins; on a tie the record met last in the
    input wins. Records without an analysis are ignored. The result is
    ordered newest first.
    """
    latest: Dict[int, AnalyticsRecord] = {}
    for record in records:
        if record.analysis is None:
            continue
        if feedback_question_id is not None and record.question_id != feedback_question_id:
            continue
        current = latest.get(record.survey_id)
        if current is None or _recency_key(record) >= _recency_key(current):
            latest[record.survey_id] = record

    return sorted(latest.values(), key=_recency_key, reverse=True)


def sentiment_summary(records: Iterable[AnalyticsRecord]) -> Dict[str, Any]:
    """
    Bucket analysed feedback by sentiment score.

    positive: score > 0.2, neutral: -0.2 <= score <= 0.2, negative: < -0.2.
    Records with no usable score are left out of every count and of the mean.
    """
    scores = [score for score in map(sentiment_score, records) if score is not None]

    positive = sum(1 for score in scores if score > POSITIVE_SENTIMENT_CUTOFF)
    negative = sum(1 for score in scores if score < NEGATIVE_SENTIMENT_CUTOFF)

    return {
        "total_feedback": len(scores),
        "positive_count": positive,
        "neutral_count": len(scores) - positive - negative,
        "negative_count": negative,
        "avg_sentiment": sum(scores) / len(scores) if scores else None,
    }
