"""
Configuration management using pydantic-settings.
Loads configuration from environment variables and .env file.
"""

from functools import lru_cache
from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database Configuration
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_NAME: str = "unit_validation"
    DATABASE_URL_OVERRIDE: str | None = None  # Full SQLAlchemy URL (e.g. sqlite+aiosqlite://)

    # Database Connection Pool Settings
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20
    DATABASE_POOL_PRE_PING: bool = True
    DATABASE_POOL_RECYCLE: int = 3600
    DATABASE_ECHO: bool = False

    @property
    def DATABASE_URL(self) -> str:
        """Construct database URL from individual components."""
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # Provider selection
    AI_PROVIDER: str | None = None  # google | azure (falls back to config/providers.yaml)
    ORCHESTRATION_MODE: str | None = None  # direct | delegated
    PROVIDER_CONFIG_PATH: str | None = None  # Defaults to config/providers.yaml

    # Google Gemini (document-grounded File Search)
    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str | None = None

    # Azure OpenAI (chat completion)
    AZURE_OPENAI_API_KEY: str | None = None
    AZURE_OPENAI_ENDPOINT: str | None = None
    AZURE_OPENAI_DEPLOYMENT: str | None = None
    AZURE_OPENAI_API_VERSION: str | None = None

    # Azure Document Intelligence (layout extraction)
    AZURE_DOC_INTEL_KEY: str | None = None
    AZURE_DOC_INTEL_ENDPOINT: str | None = None

    # Delegated orchestration
    N8N_WEBHOOK_URL: str | None = None
    WEBHOOK_TIMEOUT_SECONDS: int = 30

    # Validation pipeline
    VALIDATION_CALL_DELAY_SECONDS: float = 15.0  # Minimum spacing between inference calls in one run
    PROVIDER_REQUEST_TIMEOUT_SECONDS: float = 180.0
    RELEVANT_CONTENT_MAX_FRAGMENTS: int = 30
    RELEVANT_CONTENT_FALLBACK_CHARS: int = 30000

    # Object storage
    STORAGE_BACKEND: Literal["local", "s3"] = "local"
    STORAGE_LOCAL_ROOT: str = "uploads"
    STORAGE_S3_BUCKET: str | None = None
    AWS_REGION: str = "ap-southeast-2"

    # Application Configuration
    APP_NAME: str = "Unit Validation Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_TO_FILE: bool = False
    LOG_DIR: str = "logs"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
