"""
Response-Time Application DTOs
==============================

Data Transfer Objects for the response-time API.

Field names on the wire are camelCase, matching what the dashboard sends
and renders. Rounding to one decimal place happens here, so domain values
stay exact.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.response_time.domain import (
    BusinessHoursConfig, LatencySummary, ResponseTimeReport, UserLatency
)


ONE_DECIMAL = Decimal("0.1")


def display_value(value: float) -> float:
    """One decimal place, halves rounded away from zero (2.25 -> 2.3)."""
    return float(Decimal(value).quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP))


# ========== Request DTOs ==========

class UserRef(BaseModel):
    """CRM user id to display name."""
    id: int
    name: str


class ResponseTimeRequest(BaseModel):
    """
    Request model for a response-time analysis.

    Credentials and window are optional at the schema level so that a
    missing value is reported as a 400 by the service, before any fetch.
    """
    model_config = ConfigDict(populate_by_name=True)

    access_token: Optional[str] = Field(None, alias="accessToken", description="CRM bearer token")
    account_url: Optional[str] = Field(None, alias="accountUrl", description="CRM account base URL")
    from_timestamp: Optional[int] = Field(None, alias="fromTimestamp", description="Window start (epoch seconds)")
    to_timestamp: Optional[int] = Field(None, alias="toTimestamp", description="Window end (epoch seconds)")
    lead_ids: Optional[List[int]] = Field(
        None,
        alias="leadIds",
        description="Restrict analysis to these conversations"
    )
    business_hours: Optional[BusinessHoursConfig] = Field(
        None,
        alias="businessHours",
        description="Overrides the configured business hours"
    )
    users: List[UserRef] = Field(
        default_factory=list,
        description="Names for responsible user ids"
    )

    def user_names(self) -> Dict[int, str]:
        return {user.id: user.name for user in self.users}


# ========== Response DTOs ==========

class UserMetricsResponse(BaseModel):
    """Response-time statistics of one responsible user."""
    model_config = ConfigDict(populate_by_name=True)

    responsible_user_id: int = Field(..., alias="responsibleUserId")
    responsible_user_name: str = Field(..., alias="responsibleUserName")
    avg_response_minutes: float = Field(..., alias="avgResponseMinutes")
    median_response_minutes: float = Field(..., alias="medianResponseMinutes")
    p90_response_minutes: float = Field(..., alias="p90ResponseMinutes")
    total_messages: int = Field(..., alias="totalMessages")
    within_sla: int = Field(..., alias="withinSla")
    sla_rate: float = Field(..., alias="slaRate", description="Percentage within SLA")

    @classmethod
    def from_domain(cls, metric: UserLatency, user_names: Dict[int, str]) -> "UserMetricsResponse":
        summary = metric.summary
        return cls(
            responsible_user_id=metric.user_id,
            responsible_user_name=user_names.get(metric.user_id, f"User {metric.user_id}"),
            avg_response_minutes=display_value(summary.mean),
            median_response_minutes=display_value(summary.median),
            p90_response_minutes=display_value(summary.p90),
            total_messages=summary.count,
            within_sla=summary.within_sla,
            sla_rate=display_value(summary.sla_rate),
        )


class OverallMetricsResponse(BaseModel):
    """Response-time statistics over every pair."""
    model_config = ConfigDict(populate_by_name=True)

    avg_response_minutes: float = Field(..., alias="avgResponseMinutes")
    median_response_minutes: float = Field(..., alias="medianResponseMinutes")
    p90_response_minutes: float = Field(..., alias="p90ResponseMinutes")
    total_pairs: int = Field(..., alias="totalPairs")
    within_sla: int = Field(..., alias="withinSla")
    sla_rate: float = Field(..., alias="slaRate")

    @classmethod
    def from_domain(cls, summary: LatencySummary) -> "OverallMetricsResponse":
        return cls(
            avg_response_minutes=display_value(summary.mean),
            median_response_minutes=display_value(summary.median),
            p90_response_minutes=display_value(summary.p90),
            total_pairs=summary.count,
            within_sla=summary.within_sla,
            sla_rate=display_value(summary.sla_rate),
        )


class ResponseTimeResponse(BaseModel):
    """Response model for a response-time analysis."""
    model_config = ConfigDict(populate_by_name=True)

    user_metrics: List[UserMetricsResponse] = Field(..., alias="userMetrics")
    overall: OverallMetricsResponse
    total_events_processed: int = Field(..., alias="totalEventsProcessed")
    sla_minutes: int = Field(..., alias="slaMinutes")
    fetch_complete: bool = Field(
        True,
        alias="fetchComplete",
        description="False when the event fetch stopped before the end of the feed"
    )
    fetch_stop_reason: str = Field("exhausted", alias="fetchStopReason")
    pages_fetched: int = Field(0, alias="pagesFetched")
    cached: bool = Field(False, description="Served from the report cache")

    @classmethod
    def from_report(
        cls,
        report: ResponseTimeReport,
        user_names: Optional[Dict[int, str]] = None
    ) -> "ResponseTimeResponse":
        names = user_names or {}
        return cls(
            user_metrics=[
                UserMetricsResponse.from_domain(metric, names)
                for metric in report.user_metrics
            ],
            overall=OverallMetricsResponse.from_domain(report.overall),
            total_events_processed=report.total_events_processed,
            sla_minutes=report.sla_minutes,
            fetch_complete=report.fetch_complete,
            fetch_stop_reason=report.fetch_stop_reason,
            pages_fetched=report.pages_fetched,
            cached=report.from_cache,
        )


class BusinessHoursResponse(BaseModel):
    """Currently configured business hours."""
    model_config = ConfigDict(populate_by_name=True)

    start_hour: int = Field(..., alias="startHour")
    end_hour: int = Field(..., alias="endHour")
    days: List[int]
    sla_minutes: int = Field(..., alias="slaMinutes")
    timezone: str

    @classmethod
    def from_config(cls, config: BusinessHoursConfig, timezone: str) -> "BusinessHoursResponse":
        return cls(
            start_hour=config.start_hour,
            end_hour=config.end_hour,
            days=config.days,
            sla_minutes=config.sla_minutes,
            timezone=timezone,
        )
