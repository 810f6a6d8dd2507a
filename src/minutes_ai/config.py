"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # LLM Providers
    ANTHROPIC_API_KEY: str = ""
    OPENAI_API_KEY: str = ""
    LLM_MODEL: str = "anthropic/claude-sonnet-4-20250514"
    LLM_FALLBACK_MODEL: str = "openai/gpt-4o"
    LLM_TIMEOUT: int = 120
    LLM_MAX_RETRIES: int = 0  # Provider-level retries inside the LiteLLM Router
    LLM_DEFAULT_MAX_TOKENS: int = 4096

    # Minutes generation
    MINUTES_MAX_TOKENS: int = 8000
    MINUTES_RETRY_COUNT: int = 2

    def has_llm_provider(self) -> bool:
        """Return True when at least one provider API key is configured."""
        return bool(self.ANTHROPIC_API_KEY.strip() or self.OPENAI_API_KEY.strip())


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
