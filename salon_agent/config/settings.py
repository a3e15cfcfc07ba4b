"""
Application settings and configuration.
"""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Salon Booking Agent"
    app_version: str = "1.0.0"
    debug: bool = False

    # Tenancy
    tenant_id: str = "default"
    timezone: str = "America/Bahia"

    # Database
    state_db_path: str = "salon_state.db"

    # Conversation
    history_max_messages: int = Field(default=20, ge=1)
    llm_context_messages: int = Field(default=10, ge=1)
    suggestion_limit: int = Field(default=5, ge=1)

    # OpenAI
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    openai_timeout: float = 15.0

    # Booking backend
    booking_api_base: str = "https://api.trinks.com"
    booking_api_key: Optional[str] = None
    booking_establishment_id: Optional[str] = None
    booking_timeout: float = 10.0
    booking_max_retries: int = Field(default=3, ge=1)
    catalog_sync_on_startup: bool = False

    # Business hours (weekday numbers follow datetime.weekday(): Monday == 0)
    business_open_hour: int = 10
    business_close_hour: int = 19
    business_weekdays: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])

    # Persona
    assistant_name: str = "Marliê"
    business_name: str = "Ateliê Marcleia Abade"

    # Logging
    log_level: str = "INFO"
    event_log_path: str = "salon_event_log.jsonl"


def get_settings() -> Settings:
    """Get application settings instance."""
    return Settings()
