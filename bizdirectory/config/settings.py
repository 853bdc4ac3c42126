"""
Runtime configuration for bizdirectory.

Values come from environment variables or a local .env file. SUPABASE_URL
and SUPABASE_KEY have no defaults, so loading fails when either is missing.
APP_ENV=production refuses DEBUG=true.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Store credentials, logging and rating maintenance options."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Supabase
    # -------------------------------------------------------------------------
    supabase_url: str = Field(..., description="Base URL of the Supabase project")
    supabase_key: SecretStr = Field(..., description="API key sent with every PostgREST request")

    # -------------------------------------------------------------------------
    # Runtime
    # -------------------------------------------------------------------------
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment stage; production forbids DEBUG",
    )
    debug: bool = Field(
        default=True,
        description="Verbose diagnostics for local runs",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum level passed to structlog",
    )
    log_json: bool = Field(
        default=True,
        description="Render log events as JSON. Console rendering otherwise.",
    )

    # -------------------------------------------------------------------------
    # Ratings
    # -------------------------------------------------------------------------
    rating_rollup: Literal["accumulate", "recompute"] = Field(
        default="accumulate",
        description=(
            "How a new review is rolled up onto its business: add it to the "
            "stored totals, or rebuild the totals from every review"
        ),
    )
    reconciliation_enabled: bool = Field(
        default=True,
        description="Run the background rating reconciliation job",
    )
    reconciliation_interval_minutes: int = Field(
        default=60,
        gt=0,
        description="Minutes between two rating reconciliation passes",
    )

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @model_validator(mode="after")
    def check_debug_outside_production(self) -> "Settings":
        if self.is_production and self.debug:
            raise ValueError("DEBUG must be false when APP_ENV is production")
        return self


@lru_cache
def get_settings() -> Settings:
    """Settings for this process, loaded on first call.

    get_settings.cache_clear() forces the next call to read the environment
    again.
    """
    return Settings()
