"""Application configuration and settings management."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Central application settings loaded from environment variables.

    Credentials and upstream URLs have no default. Dependencies that need an
    unset value raise ``ConfigurationError`` at request time.
    """

    app_name: str = Field(default="BidEngine API")
    api_prefix: str = Field(default="/api")
    cors_origins: List[str] = Field(default_factory=list)
    log_level: str = Field(default="INFO")

    # Record store (no-code backend object API)
    record_store_url: Optional[str] = Field(default=None)
    record_store_api_key: Optional[str] = Field(default=None)
    record_store_timeout: float = Field(default=30.0)

    # Billing
    stripe_secret_key: Optional[str] = Field(default=None)
    stripe_price_id: Optional[str] = Field(default=None)
    stripe_webhook_secret: Optional[str] = Field(default=None)
    stripe_trial_days: int = Field(default=7)
    public_base_url: str = Field(default="https://app.bidengine.co")

    # Workflow webhooks
    bidgate_webhook_url: Optional[str] = Field(default=None)
    bidvault_webhook_url: Optional[str] = Field(default=None)
    webhook_timeout: float = Field(default=300.0)

    # Answer generation (Anthropic Messages API)
    anthropic_api_key: Optional[str] = Field(default=None)
    anthropic_base_url: str = Field(default="https://api.anthropic.com/v1")
    anthropic_version: str = Field(default="2023-06-01")
    llm_model: str = Field(default="claude-sonnet-4-20250514")
    llm_scoring_model: str = Field(default="claude-haiku-4-5-20251001")
    llm_timeout: float = Field(default=120.0)
    llm_max_attempts: int = Field(default=5)
    llm_retry_max_wait: float = Field(default=60.0)
    llm_question_delay: float = Field(default=2.0)

    analysis_text_limit: int = Field(default=50_000)
    evidence_fetch_limit: int = Field(default=500)

    model_config = {
        "env_file": ".env",
        "env_prefix": "BE_",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()  # type: ignore[arg-type]


settings = get_settings()
"""Eagerly instantiated settings for modules that prefer direct import."""
