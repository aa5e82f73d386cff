"""Configuration settings using pydantic-settings."""
import logging

from pydantic import Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Telegram Bot
    BOT_TOKEN: str = Field(default="", description="Telegram Bot API token")

    # LLM (any OpenAI-compatible endpoint)
    LLM_BASE_URL: str = Field(
        default="http://localhost:1234/v1",
        description="Base URL of the chat completions API"
    )
    LLM_MODEL: str = Field(default="gpt-4o-mini", description="Model name")
    LLM_API_KEY: str = Field(default="not-needed", description="API key for the LLM endpoint")
    LLM_TEMPERATURE: float = Field(default=0.7, description="Sampling temperature")

    # Study content
    CONTENT_SOURCE: str = Field(
        default="template",
        description="Where study content comes from: 'template' or 'llm'"
    )
    TEMPLATE_DELAY_SECONDS: float = Field(
        default=0.0,
        description="Artificial delay for template content (seconds)"
    )
    SCORE_DENOMINATOR: str = Field(
        default="total",
        description="Score denominator: 'total' (all questions) or 'scored' (questions with an answer key)"
    )

    # Database
    DB_PATH: str = Field(default="data/study_helper.db", description="Path to SQLite database file")
    RECENT_SESSIONS_LIMIT: int = Field(default=5, description="Sessions shown in recent topics")

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    class Config:
        """Pydantic config."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()

if settings.CONTENT_SOURCE not in ("template", "llm"):
    logger.warning("CONTENT_SOURCE is not valid: %r, falling back to 'template'", settings.CONTENT_SOURCE)
    settings.CONTENT_SOURCE = "template"

if settings.SCORE_DENOMINATOR not in ("total", "scored"):
    logger.warning("SCORE_DENOMINATOR is not valid: %r, falling back to 'total'", settings.SCORE_DENOMINATOR)
    settings.SCORE_DENOMINATOR = "total"

MIN_TOPIC_LENGTH = 3

DIFFICULTY_LABELS = {
    "beginner": "Beginner - New to the topic",
    "intermediate": "Intermediate - Some knowledge",
    "advanced": "Advanced - Deep understanding",
}

FOCUS_LABELS = {
    "concepts": "Core Concepts - Understanding fundamentals",
    "practice": "Practice Problems - Hands-on exercises",
    "review": "Review & Test - Assess knowledge",
    "mixed": "Mixed Approach - Balanced learning",
}
