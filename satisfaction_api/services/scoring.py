"""
Satisfaction Scoring Engine

Turns a respondent's answers into a single negative score in [0, 1]:

- negative_weight(): dissatisfaction carried by one answer
- negative_score(): importance-weighted average over every answered question

Both functions are pure and total. Bad catalog data or unexpected answers
score 0 and are reported on the anomaly channel instead of raising.

Catalog contract (not checked here): rating/stars scales grow with
satisfaction and choice options are listed best first. A catalog written the
other way round silently inverts escalation.
"""

import json
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from satisfaction_api.services.diagnostics import report_anomaly

MAX_IMPORTANCE = 100.0

_LEADING_INT = re.compile(r"\s*[+-]?\d+")
_STRICT_INT = re.compile(r"\s*[+-]?\d+\s*")


class QuestionKind(str, Enum):
    RATING = "rating"
    STARS = "stars"
    CHOICE = "choice"
    TEXT = "text"


@dataclass(frozen=True)
class CatalogQuestion:
    """Scoring view of a catalog question."""
    id: int
    type: str
    max: Optional[int] = None
    options: Any = None  # list, JSON string or comma-separated string
    importance: Any = 0.0

    @classmethod
    def from_model(cls, question) -> "CatalogQuestion":
        options = question.options
        if isinstance(options, list):
            options = tuple(options)
        return cls(
            id=question.id,
            type=question.question_type,
            max=question.max_value,
            options=options,
            importance=question.importance,
        )


@dataclass(frozen=True)
class Response:
    """One answer held by a survey session."""
    question_id: int
    answer: Any = None
    optional_answer: Optional[str] = None

    @property
    def is_answered(self) -> bool:
        return self.answer is not None and self.answer != ""


def parse_int(value: Any) -> Optional[int]:
    """Lenient integer parse: leading digits of a string, truncated floats."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(0)) if match else None
    return None


def _as_index(value: Any) -> Optional[int]:
    """Strict integer reading used for choice answers given as an index."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _STRICT_INT.fullmatch(value):
        return int(value)
    return None


def parse_options(raw: Any) -> Optional[list[str]]:
    """
    Read a choice question's options.

    Accepts a sequence, a JSON-encoded list, or falls back to splitting a
    comma-separated string. Returns None when nothing usable comes out.
    """
    if isinstance(raw, (list, tuple)):
        return [str(option) for option in raw]
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except ValueError:
            decoded = None
        if isinstance(decoded, list):
            return [str(option) for option in decoded]
        parts = [part.strip() for part in raw.split(",")]
        parts = [part for part in parts if part]
        return parts or None
    return None


def coerce_importance(value: Any, question_id: Optional[int] = None) -> float:
    """Importance as a float in [0, 100]; anything else counts as 0."""
    importance = None
    if not isinstance(value, bool):
        try:
            importance = float(value)
        except (TypeError, ValueError):
            importance = None

    if importance is None or math.isnan(importance) or not 0.0 <= importance <= MAX_IMPORTANCE:
        if value is not None:
            report_anomaly(
                "invalid_importance",
                f"question {question_id} importance {value!r} coerced to 0",
                question_id=question_id,
            )
        return 0.0
    return importance


def _clamp(weight: float) -> float:
    return min(1.0, max(0.0, weight))


def _scale_weight(question: CatalogQuestion, answer: Any) -> float:
    value = parse_int(answer)
    if value is None:
        report_anomaly(
            "non_numeric_answer",
            f"question {question.id} ({question.type}) got {answer!r}",
            question_id=question.id,
        )
        return 0.0

    scale_max = parse_int(question.max)
    if scale_max is None or scale_max <= 0:
        report_anomaly(
            "invalid_scale_max",
            f"question {question.id} has max {question.max!r}",
            question_id=question.id,
        )
        return 0.0

    threshold = scale_max // 2
    if value > threshold:
        return 0.0
    return _clamp(1 - value / (threshold + 1))


def _choice_weight(question: CatalogQuestion, answer: Any) -> float:
    options = parse_options(question.options)
    if not options:
        report_anomaly(
            "malformed_options",
            f"question {question.id} options unusable: {question.options!r}",
            question_id=question.id,
        )
        return 0.0

    chosen_index = _as_index(answer)
    if chosen_index is None and answer in options:
        chosen_index = options.index(answer)

    if chosen_index is None or not 0 <= chosen_index < len(options):
        report_anomaly(
            "unresolved_choice",
            f"question {question.id} answer {answer!r} not among {len(options)} options",
            question_id=question.id,
        )
        return 0.0

    n = len(options)
    threshold = (n - 1) // 2
    if chosen_index <= threshold:
        return 0.0

    denominator = n - threshold - 1
    if denominator <= 0:
        return 1.0
    return _clamp((chosen_index - threshold) / denominator)


def negative_weight(question: CatalogQuestion, answer: Any) -> float:
    """
    Dissatisfaction carried by one answer, in [0, 1].

    - rating/stars: 0 above floor(max / 2), else 1 - answer / (threshold + 1)
    - choice: 0 in the better half of the options, rising linearly to 1 on
      the worst option
    - text: always 0, free text is handled by sentiment analysis
    """
    if question.type in (QuestionKind.RATING.value, QuestionKind.STARS.value):
        return _scale_weight(question, answer)
    if question.type == QuestionKind.CHOICE.value:
        return _choice_weight(question, answer)
    if question.type == QuestionKind.TEXT.value:
        return 0.0

    report_anomaly(
        "unknown_question_type",
        f"question {question.id} has type {question.type!r}",
        question_id=question.id,
    )
    return 0.0


def negative_score(
    responses: Mapping[int, Response],
    catalog: Sequence[CatalogQuestion],
) -> float:
    """
    Importance-weighted negative score of a set of answers.

    Only questions both answered and present in the catalog count. Returns 0
    when none do. Questions are visited in id order so the floating point sum
    never depends on the order answers arrived in.
    """
    by_id = {question.id: question for question in catalog}

    total_importance = 0.0
    negative_importance = 0.0
    for question_id in sorted(responses):
        question = by_id.get(question_id)
        response = responses[question_id]
        if question is None or not response.is_answered:
            continue

        importance = coerce_importance(question.importance, question.id)
        total_importance += importance
        negative_importance += importance * negative_weight(question, response.answer)

    if total_importance == 0:
        return 0.0
    return negative_importance / total_importance
