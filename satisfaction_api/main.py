"""
Satisfaction Survey API - Main Application

- Real-time negative scoring and escalation of survey answers
- Question catalog management
- Response and feedback-sentiment analytics
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from satisfaction_api.api.v2.router import api_router
from satisfaction_api.config import settings
from satisfaction_api.database import init_db
from satisfaction_api.exceptions import register_exception_handlers
from satisfaction_api.middleware import CorrelationIdMiddleware
# Import all models to register them with SQLAlchemy metadata before init_db()
from satisfaction_api.models import Question, Survey, SurveyAnswer, LowSatisfactionContact  # noqa: F401

API_VERSION = "2.0.0"

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Satisfaction Survey API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Escalation threshold: {settings.NEGATIVE_SCORE_THRESHOLD}")
    try:
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        # Exception details may contain credentials
        logger.error(f"Database initialization failed: {type(e).__name__}")
        logger.warning("App starting without database - some features may not work")
    yield
    logger.info("Shutting down Satisfaction Survey API...")


app = FastAPI(
    title="Satisfaction Survey API",
    description="Survey scoring, low-satisfaction escalation and feedback analytics",
    version=API_VERSION,
    docs_url="/docs" if settings.DOCS_ENABLED else None,
    redoc_url="/redoc" if settings.DOCS_ENABLED else None,
    lifespan=lifespan,
)

allowed_origins = [
    settings.FRONTEND_URL,
    "http://localhost:3000",  # React dev server
    "http://localhost:5173",  # Vite dev server
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

register_exception_handlers(app)

app.include_router(api_router, prefix="/api/v2")


@app.get("/")
async def root():
    """Root endpoint - API info."""
    response = {
        "name": "Satisfaction Survey API",
        "version": API_VERSION,
        "health": "/health",
    }
    if settings.DOCS_ENABLED:
        response["docs"] = "/docs"
    return response


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": API_VERSION,
        "environment": settings.ENVIRONMENT,
    }


# For running with uvicorn directly (development only)
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "satisfaction_api.main:app",
        host="0.0.0.0",
        port=5000,
        reload=settings.DEBUG,
    )
