"""
Response-Time Value Objects
===========================

Immutable value objects for the response-time domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared.
"""

import hashlib
import json
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.config import (
    DEFAULT_START_HOUR, DEFAULT_END_HOUR,
    DEFAULT_BUSINESS_DAYS, DEFAULT_SLA_MINUTES
)


class BusinessHoursConfig(BaseModel):
    """
    Business-hours calendar and SLA threshold.

    Loaded from YAML or supplied per request. Accepts both the snake_case
    field names and the camelCase names used by the dashboard.

    Days use 0=Sunday .. 6=Saturday.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    start_hour: int = Field(
        default=DEFAULT_START_HOUR,
        ge=0,
        le=23,
        alias="startHour",
        description="First business hour of the day (inclusive)"
    )
    end_hour: int = Field(
        default=DEFAULT_END_HOUR,
        ge=1,
        le=24,
        alias="endHour",
        description="End of the business day (exclusive)"
    )
    days: List[int] = Field(
        default_factory=lambda: list(DEFAULT_BUSINESS_DAYS),
        description="Business days, 0=Sunday .. 6=Saturday"
    )
    sla_minutes: int = Field(
        default=DEFAULT_SLA_MINUTES,
        gt=0,
        alias="slaMinutes",
        description="Response-time threshold in business minutes"
    )

    @field_validator("days")
    @classmethod
    def validate_days(cls, v: List[int]) -> List[int]:
        """Normalize days to a sorted list of distinct weekday numbers."""
        invalid = [d for d in v if d < 0 or d > 6]
        if invalid:
            raise ValueError(f"days must be within 0..6, got {invalid}")
        if not v:
            raise ValueError("at least one business day is required")
        return sorted(set(v))

    @model_validator(mode="after")
    def validate_hours(self) -> "BusinessHoursConfig":
        """Business day must have a positive length."""
        if self.start_hour >= self.end_hour:
            raise ValueError(
                f"start_hour ({self.start_hour}) must be before end_hour ({self.end_hour})"
            )
        return self

    def fingerprint(self) -> str:
        """Stable digest of the configuration, used in cache keys."""
        payload = json.dumps(self.model_dump(), sort_keys=True)
        return hashlib.sha256(payload.encode()).hexdigest()[:16]
