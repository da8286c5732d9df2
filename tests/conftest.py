import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from satisfaction_api.main import app
from satisfaction_api.database import Base, get_db, get_session_factory
from satisfaction_api.models import Question
from satisfaction_api.services.sentiment_service import SentimentAnalyzer, get_sentiment_analyzer
from satisfaction_api.services.survey_session import SessionRegistry, get_session_registry

from tests.factories import standard_catalog

# Test database URL (SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"


class FakeSentimentAnalyzer(SentimentAnalyzer):
    """Analyzer returning a canned result, or raising when told to fail."""

    def __init__(self, score: float = 0.6, fail: bool = False):
        super().__init__(base_url="http://analyzer.test/analyze")
        self.score = score
        self.fail = fail
        self.calls: list[str] = []

    async def analyze(self, text: str) -> dict:
        self.calls.append(text)
        if self.fail:
            raise RuntimeError("analyzer unavailable")
        return {
            "sentiment": {"score": self.score, "magnitude": 0.9, "category": "positive", "sentences": []},
            "entities": [],
            "mainTopics": [],
            "categories": [],
        }


@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def test_db(test_session_maker):
    """Database session for a single test."""
    async with test_session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_catalog(test_db: AsyncSession):
    """Store the standard five-question catalog."""
    questions = [Question(**data) for data in standard_catalog()]
    test_db.add_all(questions)
    await test_db.commit()
    return questions


@pytest.fixture
def registry():
    return SessionRegistry(threshold=0.5)


@pytest.fixture
def analyzer():
    return FakeSentimentAnalyzer()


@pytest_asyncio.fixture
async def client(test_db: AsyncSession, test_session_maker, registry, analyzer):
    """Create test client with overridden dependencies."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: test_session_maker
    app.dependency_overrides[get_session_registry] = lambda: registry
    app.dependency_overrides[get_sentiment_analyzer] = lambda: analyzer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
