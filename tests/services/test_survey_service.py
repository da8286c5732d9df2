"""
Tests for the submission flow: contact resolution and final submit.
"""

import asyncio

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from satisfaction_api.exceptions import (
    BusinessRuleError, ConflictError, NotFoundError, RetryableStorageError,
)
from satisfaction_api.models import LowSatisfactionContact, SurveyAnswer
from satisfaction_api.services import response_store, survey_service
from satisfaction_api.services.escalation import EscalationPhase
from satisfaction_api.services.scoring import CatalogQuestion
from satisfaction_api.services.survey_session import SessionRegistry, SurveySession

CATALOG = (
    CatalogQuestion(id=1, type="rating", max=10, importance=100.0),
    CatalogQuestion(id=10, type="text", importance=0.0),
)

CONTACT = {"name": "Marie Dupont", "phone": "0601020304", "email": "marie@example.com"}


async def count_rows(db: AsyncSession, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar()


async def escalated_session(db: AsyncSession) -> SurveySession:
    survey = await response_store.create_survey(db)
    session = SurveySession(survey.id, threshold=0.5)
    session.record_answer(1, CATALOG, answer=0)
    assert session.policy.phase == EscalationPhase.PENDING_CONTACT
    return session


class TestResolveWithContact:

    @pytest.mark.asyncio
    async def test_overlapping_requests_store_one_contact(self, test_db: AsyncSession, test_session_maker):
        session = await escalated_session(test_db)

        async with test_session_maker() as first_db, test_session_maker() as second_db:
            results = await asyncio.gather(
                survey_service.resolve_with_contact(first_db, session, **CONTACT),
                survey_service.resolve_with_contact(second_db, session, **CONTACT),
            )

        assert sorted(results) == [False, True]
        assert await count_rows(test_db, LowSatisfactionContact) == 1
        assert session.policy.phase == EscalationPhase.RESOLVED

    @pytest.mark.asyncio
    async def test_failed_write_leaves_contact_pending(self, test_db: AsyncSession, monkeypatch):
        session = await escalated_session(test_db)

        async def failing_add_contact(*args, **kwargs):
            raise RetryableStorageError("Contact details could not be recorded")

        monkeypatch.setattr(response_store, "add_contact", failing_add_contact)
        with pytest.raises(RetryableStorageError):
            await survey_service.resolve_with_contact(test_db, session, **CONTACT)
        monkeypatch.undo()

        assert session.policy.phase == EscalationPhase.PENDING_CONTACT
        assert await survey_service.resolve_with_contact(test_db, session, **CONTACT) is True
        assert await count_rows(test_db, LowSatisfactionContact) == 1


class TestSubmit:

    @pytest.mark.asyncio
    async def test_overlapping_submits_write_once(self, test_db: AsyncSession, test_session_maker):
        survey = await response_store.create_survey(test_db)
        registry = SessionRegistry(threshold=0.5)
        session = registry.open(survey.id)
        session.record_answer(1, CATALOG, answer=9)

        async with test_session_maker() as first_db, test_session_maker() as second_db:
            results = await asyncio.gather(
                survey_service.submit(first_db, registry, session, CATALOG),
                survey_service.submit(second_db, registry, session, CATALOG),
                return_exceptions=True,
            )

        assert results[0].status == "submitted"
        assert isinstance(results[1], ConflictError)
        assert await count_rows(test_db, SurveyAnswer) == 1
        assert registry.get(survey.id) is None

    @pytest.mark.asyncio
    async def test_failed_write_allows_retry(self, test_db: AsyncSession, monkeypatch):
        survey = await response_store.create_survey(test_db)
        registry = SessionRegistry(threshold=0.5)
        session = registry.open(survey.id)
        session.record_answer(1, CATALOG, answer=9)

        async def failing_write(*args, **kwargs):
            raise RetryableStorageError("Responses could not be recorded")

        monkeypatch.setattr(response_store, "write_submission", failing_write)
        with pytest.raises(RetryableStorageError):
            await survey_service.submit(test_db, registry, session, CATALOG)
        monkeypatch.undo()

        outcome = await survey_service.submit(test_db, registry, session, CATALOG)
        assert outcome.status == "submitted"
        assert outcome.responses_recorded == 1

    @pytest.mark.asyncio
    async def test_survey_without_answers_rejected(self, test_db: AsyncSession):
        survey = await response_store.create_survey(test_db)
        registry = SessionRegistry(threshold=0.5)
        session = registry.open(survey.id)
        session.record_answer(1, CATALOG, optional_answer="Rien à ajouter")

        with pytest.raises(BusinessRuleError):
            await survey_service.submit(test_db, registry, session, CATALOG)

        assert await count_rows(test_db, SurveyAnswer) == 0
        assert registry.get(survey.id) is session


class TestOpenSession:

    @pytest.mark.asyncio
    async def test_missing_survey_drops_session(self, test_db: AsyncSession):
        registry = SessionRegistry(threshold=0.5)
        registry.open(404)

        with pytest.raises(NotFoundError):
            await survey_service.open_session(test_db, registry, 404)

        assert registry.get(404) is None
        assert len(registry) == 0
