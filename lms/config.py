"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str

    # Gemini API (short answer grading)
    GEMINI_API_KEY: str
    GEMINI_MODEL: str = "gemini-1.5-flash"

    # Redis (empty string disables the analytics cache)
    REDIS_URL: str = "redis://redis:6379/0"

    # Application
    APP_NAME: str = "LMS Quiz Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_PER_HOUR: int = 1000

    # Analytics
    ANALYTICS_CACHE_TTL: int = 300  # 5 minutes

    # Grading oracle
    ORACLE_TIMEOUT_SECONDS: float = 30.0
    ORACLE_MAX_ATTEMPTS: int = 3
    ORACLE_BACKOFF_SECONDS: float = 1.0

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
