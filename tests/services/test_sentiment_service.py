"""
Tests for the sentiment analyzer client and the feedback analysis job.
"""

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from satisfaction_api.services import response_store
from satisfaction_api.services.scoring import Response
from satisfaction_api.services.sentiment_service import SentimentAnalyzer, analyze_feedback
from tests.factories import sentiment_analysis


def analyzer_returning(payload, status_code=200) -> SentimentAnalyzer:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    return SentimentAnalyzer(
        base_url="http://analyzer.test/analyze",
        transport=httpx.MockTransport(handler),
    )


async def submitted_survey(db: AsyncSession, feedback: str = "Personnel très aimable") -> int:
    survey = await response_store.create_survey(db)
    await response_store.write_submission(
        db, survey.id, [Response(question_id=1, answer=9), Response(question_id=10, answer=feedback)], 0.0,
    )
    return survey.id


class TestSentimentAnalyzer:

    @pytest.mark.asyncio
    async def test_analyze_returns_payload(self):
        analyzer = analyzer_returning(sentiment_analysis(0.6, "positive"))

        analysis = await analyzer.analyze("Très bon service")
        assert analysis["sentiment"]["score"] == 0.6

    @pytest.mark.asyncio
    async def test_sends_text(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = request.content
            return httpx.Response(200, json=sentiment_analysis(0.0))

        analyzer = SentimentAnalyzer(base_url="http://analyzer.test/analyze", transport=httpx.MockTransport(handler))
        await analyzer.analyze("Correct")
        assert b'"text"' in seen["body"]

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        analyzer = analyzer_returning({"error": "quota"}, status_code=500)
        with pytest.raises(httpx.HTTPStatusError):
            await analyzer.analyze("texte")

    @pytest.mark.asyncio
    async def test_reply_without_sentiment_raises(self):
        analyzer = analyzer_returning({"entities": []})
        with pytest.raises(ValueError):
            await analyzer.analyze("texte")

    def test_unconfigured(self):
        assert SentimentAnalyzer().is_configured is False


class TestAnalyzeFeedback:

    @pytest.mark.asyncio
    async def test_stores_analysis(self, test_db: AsyncSession, test_session_maker):
        survey_id = await submitted_survey(test_db)
        analyzer = analyzer_returning(sentiment_analysis(0.6, "positive"))

        stored = await analyze_feedback(test_session_maker, analyzer, survey_id, "Personnel très aimable")

        assert stored is True
        records = await response_store.load_records(test_db, question_ids=[10], with_analysis_only=True)
        assert records[0].analysis["sentiment"]["score"] == 0.6

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self, test_db: AsyncSession, test_session_maker):
        survey_id = await submitted_survey(test_db)
        analyzer = analyzer_returning({"error": "down"}, status_code=503)

        stored = await analyze_feedback(test_session_maker, analyzer, survey_id, "Personnel très aimable")

        assert stored is False
        records = await response_store.load_records(test_db, question_ids=[10])
        assert len(records) == 1
        assert records[0].analysis is None

    @pytest.mark.asyncio
    async def test_skipped_when_not_configured(self, test_session_maker):
        assert await analyze_feedback(test_session_maker, SentimentAnalyzer(), 1, "texte") is False

    @pytest.mark.asyncio
    async def test_blank_text_skipped(self, test_session_maker):
        analyzer = analyzer_returning(sentiment_analysis(0.1))
        assert await analyze_feedback(test_session_maker, analyzer, 1, "   ") is False
