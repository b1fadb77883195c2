"""
Configuration management using Pydantic Settings
"""
from pydantic_settings import BaseSettings
from typing import Dict, List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str = "sqlite:///./eduplatform.db"

    # AI providers (tried in this order, canned fallback when all fail)
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-1.5-flash"
    DEEPSEEK_API_KEY: Optional[str] = None
    DEEPSEEK_URL: str = "https://api.deepseek.com/v1/chat/completions"
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    OPENROUTER_MODEL: str = "deepseek/deepseek-chat"
    OPENROUTER_REFERER: str = "http://localhost:3000"
    AI_TIMEOUT_SECONDS: float = 20.0
    AI_MAX_TOKENS: int = 1000

    # Redis (caching disabled when unset or unreachable)
    REDIS_URL: Optional[str] = None

    # Auth
    JWT_SECRET_KEY: str = "your-secret-key-change-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Application
    APP_NAME: str = "EduPlatform"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_PER_HOUR: int = 1000

    # Test Settings
    DEFAULT_TESTS_CACHE_TTL: int = 300  # 5 minutes
    SECONDS_PER_QUESTION: int = 60
    PASSING_PERCENTAGE: int = 60
    PROGRESS_TREND_DAYS: int = 30
    RECENT_ACTIVITY_LIMIT: int = 10
    MAX_GENERATED_QUESTIONS: int = 20

    # Experiments: {experiment_name: {variant: weight}}, weights sum to 100
    EXPERIMENTS: Dict[str, Dict[str, int]] = {
        "pm_landing_conversion_test": {"control": 33, "variantB": 33, "variantC": 34},
    }

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()
