"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from pathlib import Path
from typing import List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="response-time-service", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== CRM Event Feed ==========
    events_page_size: int = Field(
        default=100,
        description="Events requested per page",
        ge=1,
        le=250
    )
    events_max_pages: int = Field(
        default=50,
        description="Page ceiling per fetch (safety stop)",
        ge=1
    )
    events_page_timeout_seconds: float = Field(
        default=25.0,
        description="Timeout for a single page request",
        gt=0
    )
    events_fetch_budget_seconds: float = Field(
        default=55.0,
        description="Wall-clock budget for the whole paginated fetch",
        gt=0
    )
    events_user_agent: str = Field(
        default="ResponseTimeService/1.0",
        description="User-Agent sent to the CRM API"
    )

    # ========== Business Hours ==========
    business_hours_config_path: Path = Field(
        default=Path("business_hours.yaml"),
        description="Path to the default business-hours YAML file"
    )
    business_timezone: str = Field(
        default="-03:00",
        description="Business time zone: fixed offset (+HH:MM) or IANA name"
    )

    # ========== Report Cache ==========
    report_cache_ttl_seconds: int = Field(
        default=300,
        description="Seconds a computed report stays cached (0 disables)",
        ge=0
    )
    report_cache_max_entries: int = Field(
        default=256,
        description="Most reports kept at once; the oldest is evicted first",
        ge=1
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class EventType(str):
    """CRM timeline event types consumed by the analytics engine."""
    INCOMING_MESSAGE = "incoming_chat_message"
    OUTGOING_MESSAGE = "outgoing_chat_message"
    OWNERSHIP_CHANGED = "entity_responsible_changed"


class FetchStopReason(str):
    """Why the paginated event fetch stopped."""
    EXHAUSTED = "exhausted"
    PAGE_LIMIT = "page_limit"
    TIMEOUT = "timeout"
    BUDGET_EXHAUSTED = "budget_exhausted"
    TRANSPORT_ERROR = "transport_error"
    HTTP_ERROR = "http_error"
    CANCELLED = "cancelled"


# ========== Business-hours defaults ==========

DEFAULT_START_HOUR = 8
DEFAULT_END_HOUR = 18
DEFAULT_BUSINESS_DAYS = [1, 2, 3, 4, 5]  # 0=Sunday .. 6=Saturday
DEFAULT_SLA_MINUTES = 10

TRACKED_EVENT_TYPES = [
    EventType.INCOMING_MESSAGE,
    EventType.OUTGOING_MESSAGE,
    EventType.OWNERSHIP_CHANGED,
]
