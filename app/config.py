"""Application settings loaded from environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly typed application configuration.

    ``OPENAI_API_KEY`` is mandatory: a missing or blank credential makes
    ``Settings()`` raise, so the process refuses to start.
    """

    openai_api_key: str = Field(alias="OPENAI_API_KEY")
    openai_base_url: str = Field(
        default="https://api.openai.com/v1", alias="OPENAI_BASE_URL"
    )
    chat_model: str = Field(default="gpt-4", alias="CHAT_MODEL")
    chat_temperature: float = Field(default=0.5, ge=0.0, le=2.0, alias="CHAT_TEMPERATURE")
    chat_max_tokens: int = Field(default=3000, gt=0, alias="CHAT_MAX_TOKENS")
    chat_timeout: float = Field(default=30.0, gt=0, alias="CHAT_TIMEOUT")
    chat_max_retries: int = Field(
        default=2, ge=0, alias="CHAT_MAX_RETRIES", description="Extra attempts"
    )
    chat_backoff_base: float = Field(
        default=1.0, ge=0, alias="CHAT_BACKOFF_BASE", description="Seconds"
    )
    verify_upstream_on_startup: bool = Field(
        default=False, alias="VERIFY_UPSTREAM_ON_STARTUP"
    )

    max_text_length: int = Field(default=7000, gt=0, alias="MAX_TEXT_LENGTH")
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, gt=0, alias="MAX_UPLOAD_BYTES")
    allow_legacy_doc: bool = Field(default=False, alias="ALLOW_LEGACY_DOC")
    max_body_bytes: int = Field(default=1024 * 1024, gt=0, alias="MAX_BODY_BYTES")
    prompt_templates_path: Path | None = Field(default=None, alias="PROMPT_TEMPLATES_PATH")

    cors_allowed_origins: str = Field(default="*", alias="CORS_ALLOWED_ORIGINS")
    rate_limit_window_seconds: float = Field(
        default=15 * 60, gt=0, alias="RATE_LIMIT_WINDOW_SECONDS"
    )
    rate_limit_max_requests: int = Field(default=100, gt=0, alias="RATE_LIMIT_MAX_REQUESTS")

    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: Literal["debug", "info", "warning", "error", "critical"] = Field(
        default="info", alias="LOG_LEVEL"
    )
    debug_errors: bool = Field(default=False, alias="DEBUG_ERRORS")
    port: int = Field(default=8000, alias="PORT")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    @field_validator("openai_api_key")
    @classmethod
    def _require_api_key(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("OPENAI_API_KEY must not be empty")
        return value

    @property
    def cors_origins(self) -> list[str]:
        """Allowed cross-origin callers, parsed from the comma separated list."""

        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]

    @property
    def expose_error_details(self) -> bool:
        return self.debug_errors and self.environment != "production"


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of settings."""

    return Settings()
