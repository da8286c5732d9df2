"""
FastAPI Dependencies

Database sessions, the survey session registry and the sentiment analyzer
are all injected so tests can override them.
"""

from typing import Annotated
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from satisfaction_api.database import get_db, get_session_factory
from satisfaction_api.services.sentiment_service import SentimentAnalyzer, get_sentiment_analyzer
from satisfaction_api.services.survey_session import SessionRegistry, get_session_registry


DbSession = Annotated[AsyncSession, Depends(get_db)]
SessionFactory = Annotated[async_sessionmaker, Depends(get_session_factory)]
Registry = Annotated[SessionRegistry, Depends(get_session_registry)]
Analyzer = Annotated[SentimentAnalyzer, Depends(get_sentiment_analyzer)]
