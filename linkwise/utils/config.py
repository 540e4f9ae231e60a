"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically.
"""

from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # DataForSEO (keyword volume enrichment)
    DATAFORSEO_LOGIN: Optional[str] = None
    DATAFORSEO_PASSWORD: Optional[str] = None

    # Firecrawl (Required for crawling)
    FIRECRAWL_API_KEY: Optional[str] = None

    # Google Search Console (Optional - enrichment is skipped without a token)
    GSC_ACCESS_TOKEN: Optional[str] = None
    GSC_REFRESH_TOKEN: Optional[str] = None
    GSC_TOKEN_EXPIRES_AT: Optional[float] = None  # Epoch seconds
    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_CLIENT_SECRET: Optional[str] = None

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Keyword metrics market
    KEYWORD_LOCATION: str = "United States"
    KEYWORD_LANGUAGE: str = "English"

    # Scoring thresholds
    KEYWORD_SCORE_FLOOR: float = 100.0
    TFIDF_MIN_SCORE: float = 0.1
    RELEVANT_TFIDF_SCORE: float = 0.2

    # Runs
    STALE_RUN_MINUTES: int = 60

    # Timeouts
    API_TIMEOUT: int = 60
    CRAWL_POLL_TIMEOUT: int = 600

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
