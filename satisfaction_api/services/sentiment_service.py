"""
Sentiment Analyzer Client

Sends free-text feedback to the external NLP service and attaches the result,
verbatim, to the stored feedback answer. Analysis is best-effort: failures
are logged and never touch the submission the feedback belongs to.

Expected analyzer response:
    {
        "sentiment": {"score": float, "magnitude": float, "category": str, "sentences": [...]},
        "entities": [...],
        "mainTopics": [...],
        "categories": [...]
    }
"""

import logging
from typing import Any, Dict, Optional

import httpx
from sqlalchemy.ext.asyncio import async_sessionmaker

from satisfaction_api.config import settings
from satisfaction_api.services import response_store

logger = logging.getLogger(__name__)


class SentimentAnalyzer:
    """HTTP client for the sentiment analysis service."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    async def analyze(self, text: str) -> Dict[str, Any]:
        """Analyze text. Raises on transport errors or a malformed reply."""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.base_url, json={"text": text})
            response.raise_for_status()
            analysis = response.json()

        if not isinstance(analysis, dict) or not isinstance(analysis.get("sentiment"), dict):
            raise ValueError("Sentiment analyzer reply has no sentiment object")
        return analysis


def get_sentiment_analyzer() -> SentimentAnalyzer:
    """Dependency returning the configured analyzer."""
    return SentimentAnalyzer(
        base_url=settings.SENTIMENT_ANALYZER_URL,
        timeout=settings.SENTIMENT_TIMEOUT_SECONDS,
    )


async def analyze_feedback(
    session_factory: async_sessionmaker,
    analyzer: SentimentAnalyzer,
    survey_id: int,
    text: str,
    question_id: Optional[int] = None,
) -> bool:
    """
    Analyze a survey's feedback text and store the result.

    Runs after the submission has been committed. Returns whether an
    analysis was stored.
    """
    if not analyzer.is_configured:
        logger.debug(f"Sentiment analyzer not configured, skipping survey {survey_id}")
        return False
    if not text or not text.strip():
        return False

    question_id = settings.FEEDBACK_QUESTION_ID if question_id is None else question_id

    try:
        analysis = await analyzer.analyze(text)
        async with session_factory() as db:
            updated = await response_store.attach_analysis(db, survey_id, question_id, analysis)
    except Exception as e:
        logger.error(f"Feedback analysis failed for survey {survey_id}: {type(e).__name__}: {e}")
        return False

    logger.info(f"Stored sentiment analysis for survey {survey_id} ({updated} rows)")
    return updated > 0
