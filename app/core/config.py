"""Application configuration management."""

from typing import Literal

from pydantic import AnyUrl, ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # HH.ru OAuth
    hh_client_id: str
    hh_client_secret: str
    hh_redirect_uri: str
    hh_user_agent: str = "ApplyBot/1.0 (support@applybot.local)"
    hh_host: str = "hh.ru"

    # LLM Configuration
    llm_provider: Literal["ollama", "claude"] = "ollama"
    ollama_base_url: str = "http://localhost:11434"
    ollama_model: str = "qwen3:14b"
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-sonnet-4-20250514"

    # Database
    database_url: AnyUrl

    # Redis / queue
    redis_url: str = "redis://localhost:6379/0"
    queue_name: str = "ai-application"
    queue_max_attempts: int = Field(default=3, ge=1, le=10)
    queue_backoff_seconds: int = Field(default=2, ge=1)
    queue_job_timeout: str = "10m"
    queue_result_ttl: int = Field(
        default=86400 * 7,
        description="Seconds to keep finished jobs for history",
    )
    queue_failure_ttl: int = Field(
        default=86400 * 7,
        description="Seconds to keep failed jobs for debugging",
    )

    # Queue maintenance
    maintenance_enabled: bool = True
    maintenance_interval_minutes: int = Field(default=15, ge=1)
    stale_application_minutes: int = Field(default=60, ge=1)

    # Progress streaming
    progress_poll_seconds: float = Field(default=2.0, gt=0)

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
