"""Configuration management using Pydantic Settings."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///rss_digest.db", alias="DATABASE_URL")
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    # API Keys
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")

    # Summarization Settings
    llm_model: str = Field(default="gpt-4o-mini", alias="LLM_MODEL")
    llm_max_tokens: int = Field(default=500, alias="LLM_MAX_TOKENS")
    llm_aggregate_max_tokens: int = Field(default=1500, alias="LLM_AGGREGATE_MAX_TOKENS")
    llm_temperature: float = Field(default=0.5, alias="LLM_TEMPERATURE")
    llm_timeout_seconds: float = Field(default=60.0, alias="LLM_TIMEOUT_SECONDS")
    llm_retry_attempts: int = Field(default=5, alias="LLM_RETRY_ATTEMPTS")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    gcp_project_id: Optional[str] = Field(default=None, alias="GCP_PROJECT_ID")

    @property
    def openai_configured(self) -> bool:
        """Whether a usable OpenAI API key is present."""
        key = self.openai_api_key.strip()
        return bool(key) and key != "your-api-key-here"


# Global settings instance
settings = Settings()
