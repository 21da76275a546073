"""
ResiliNet Triage - Configuration Management

Centralized configuration using Pydantic Settings.
All secrets and environment-specific values are loaded from environment variables.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Hierarchy (highest to lowest priority):
    1. Environment variables
    2. .env file
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # --- Application ---
    app_env: str = "development"
    app_debug: bool = True
    app_log_level: str = "INFO"
    log_json: bool = False

    # --- Server ---
    backend_host: str = "0.0.0.0"
    backend_port: int = Field(
        default=5000,
        validation_alias=AliasChoices("port", "backend_port"),
    )

    # --- Classifier (generative model collaborator) ---
    # "gemini" = hosted Gemini model over REST (requires GEMINI_API_KEY)
    # "dummy" = keyword heuristic, no network access
    classifier_backend: str = "gemini"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    classifier_timeout_seconds: float = 10.0

    # --- Input Validation ---
    min_description_length: int = 5

    # --- Privacy ---
    anonymize_logs: bool = True          # Log description length only, never content

    # --- Analytics & History ---
    enable_analytics: bool = True                    # Record analysis events for /api/analytics
    store_analytics_text_snippets: bool = False      # Keep truncated descriptions in analytics
    analytics_max_events: int = 10000                # Bounded in-memory buffer

    # --- Security ---
    allowed_origins: str = "*"

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse comma-separated origins into list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance.

    Use dependency injection in routes:
        settings: Settings = Depends(get_settings)
    """
    return Settings()


# Convenience export
settings = get_settings()
