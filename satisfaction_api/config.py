from pydantic_settings import BaseSettings
from pydantic import field_validator
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "postgresql+asyncpg://localhost:5432/satisfaction_db"

    @field_validator('DATABASE_URL', mode='before')
    @classmethod
    def convert_database_url(cls, v: str) -> str:
        """Convert postgresql:// to postgresql+asyncpg:// for async support."""
        if v and v.startswith('postgresql://'):
            return v.replace('postgresql://', 'postgresql+asyncpg://', 1)
        return v

    # CORS
    FRONTEND_URL: str = "http://localhost:3000"

    # Escalation
    NEGATIVE_SCORE_THRESHOLD: float = 0.5

    @field_validator('NEGATIVE_SCORE_THRESHOLD')
    @classmethod
    def check_threshold(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("NEGATIVE_SCORE_THRESHOLD must be between 0 and 1")
        return v

    # Question catalog
    IMPORTANCE_TOTAL: float = 100.0
    IMPORTANCE_TOLERANCE: float = 0.01
    FEEDBACK_QUESTION_ID: int = 10
    ADDITIONAL_ANALYTICS_QUESTION_IDS: list[int] = [5, 6, 7, 8, 9]

    # Survey sessions untouched this long are dropped from memory
    SESSION_IDLE_TIMEOUT_SECONDS: float = 6 * 3600

    # External sentiment analyzer (analysis is skipped when unset)
    SENTIMENT_ANALYZER_URL: str | None = None
    SENTIMENT_TIMEOUT_SECONDS: float = 10.0

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    DOCS_ENABLED: bool = True

    @property
    def sqlalchemy_echo(self) -> bool:
        """Echo SQL only while debugging outside production."""
        return self.DEBUG and self.ENVIRONMENT != "production"

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
