"""
Response-Time Application Services
==================================

Application services orchestrate the analytics pipeline:
fetch -> group -> pair -> aggregate.

Following SOLID principles:
- Single Responsibility: the service only sequences the stages
- Dependency Inversion: the event feed, configuration source and cache
  are abstractions implemented in the infrastructure layer
"""

import asyncio
import dataclasses
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from src.config import settings, TRACKED_EVENT_TYPES
from src.core.exceptions import MissingInputException, ValidationException
from src.response_time.domain import (
    BusinessCalendar, BusinessHoursConfig, FetchOutcome, ResponseTimeReport,
    aggregate, group_events, pair_conversations, resolve_timezone
)
from src.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)


# ========== Interfaces (Dependency Inversion) ==========

class IEventSource(ABC):
    """Interface for the CRM event feed."""

    @abstractmethod
    async def fetch_events(
        self,
        account_url: str,
        access_token: str,
        from_timestamp: int,
        to_timestamp: int,
        event_types: Iterable[str] = TRACKED_EVENT_TYPES,
        cancel_event: Optional[asyncio.Event] = None
    ) -> FetchOutcome:
        """Fetch all events in the window; never raises for feed failures."""


class IBusinessHoursProvider(ABC):
    """Interface for business-hours configuration access."""

    @abstractmethod
    def get_config(self) -> BusinessHoursConfig:
        """Get current default business-hours configuration."""


class IReportCache(ABC):
    """Interface for caching computed reports."""

    @abstractmethod
    def get(self, key: str) -> Optional[ResponseTimeReport]:
        """Cached report for key, if still fresh."""

    @abstractmethod
    def set(self, key: str, report: ResponseTimeReport) -> None:
        """Store a report under key."""


def report_cache_key(
    account_url: str,
    from_timestamp: int,
    to_timestamp: int,
    config: BusinessHoursConfig,
    timezone_name: str,
    lead_ids: Optional[Iterable[int]] = None,
) -> str:
    """
    Cache key for a report.

    Combines the account, the time window, the business-hours fingerprint,
    the time zone and the conversation filter; changing any of them is a miss.
    """
    leads = ",".join(str(lead_id) for lead_id in sorted(set(lead_ids or [])))
    return "|".join([
        account_url.rstrip("/").lower(),
        str(from_timestamp),
        str(to_timestamp),
        config.fingerprint(),
        timezone_name,
        leads or "*",
    ])


# ========== Pipeline ==========

def build_report(
    outcome: FetchOutcome,
    calendar: BusinessCalendar,
    lead_ids: Optional[Iterable[int]] = None
) -> ResponseTimeReport:
    """Turn a fetch outcome into a report. Pure; no I/O."""
    with log_latency(logger, "response_time_pipeline", events=len(outcome.events)):
        grouped = group_events(outcome.events)
        pairs = pair_conversations(grouped, calendar, lead_ids)
        user_metrics, overall = aggregate(pairs, calendar.config.sla_minutes)

    logger.info(
        "Response pairs computed",
        extra={
            "incoming": grouped.incoming_count,
            "outgoing": grouped.outgoing_count,
            "ownership_changes": grouped.ownership_change_count,
            "pairs": len(pairs),
            "users": len(user_metrics),
        }
    )

    return ResponseTimeReport(
        user_metrics=user_metrics,
        overall=overall,
        total_pairs=len(pairs),
        total_events_processed=outcome.raw_event_count,
        sla_minutes=calendar.config.sla_minutes,
        fetch_complete=outcome.complete,
        fetch_stop_reason=outcome.stop_reason,
        pages_fetched=outcome.pages_fetched,
    )


# ========== Application Services ==========

class ResponseTimeService:
    """
    Service computing response-time and SLA statistics for a time window.

    Stateless between calls apart from the optional report cache.
    """

    def __init__(
        self,
        event_source: IEventSource,
        config_provider: IBusinessHoursProvider,
        cache: Optional[IReportCache] = None,
        timezone_name: Optional[str] = None
    ):
        self._event_source = event_source
        self._config_provider = config_provider
        self._cache = cache
        self.timezone_name = timezone_name or settings.business_timezone
        self._tz = resolve_timezone(self.timezone_name)

    def calendar_for(self, business_hours: Optional[BusinessHoursConfig] = None) -> BusinessCalendar:
        """Calendar for the request's business hours, or the configured default."""
        config = business_hours or self._config_provider.get_config()
        return BusinessCalendar(config, self._tz)

    @staticmethod
    def validate_inputs(
        access_token: Optional[str],
        account_url: Optional[str],
        from_timestamp: Optional[int],
        to_timestamp: Optional[int]
    ) -> None:
        """
        Check required inputs before anything is fetched.

        Raises:
            MissingInputException: a required value is absent or zero
            ValidationException: the window is reversed
        """
        for name, value in (
            ("accessToken", access_token),
            ("accountUrl", account_url),
            ("fromTimestamp", from_timestamp),
            ("toTimestamp", to_timestamp),
        ):
            if not value:
                raise MissingInputException(name)

        if from_timestamp > to_timestamp:
            raise ValidationException(
                "fromTimestamp must not be after toTimestamp",
                {"fromTimestamp": from_timestamp, "toTimestamp": to_timestamp}
            )

    async def analyze(
        self,
        access_token: Optional[str],
        account_url: Optional[str],
        from_timestamp: Optional[int],
        to_timestamp: Optional[int],
        business_hours: Optional[BusinessHoursConfig] = None,
        lead_ids: Optional[List[int]] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> ResponseTimeReport:
        """
        Run the full analytics pipeline for one window.

        Only missing inputs raise. Feed trouble yields a report built from
        whatever was fetched, flagged through `fetch_complete`.
        """
        self.validate_inputs(access_token, account_url, from_timestamp, to_timestamp)
        calendar = self.calendar_for(business_hours)

        cache_key = None
        if self._cache is not None:
            cache_key = report_cache_key(
                account_url, from_timestamp, to_timestamp,
                calendar.config, self.timezone_name, lead_ids
            )
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.info("Response-time report served from cache")
                return dataclasses.replace(cached, from_cache=True)

        logger.info(
            "Fetching response time events",
            extra={
                "from_timestamp": from_timestamp,
                "to_timestamp": to_timestamp,
                "start_hour": calendar.config.start_hour,
                "end_hour": calendar.config.end_hour,
                "days": calendar.config.days,
                "sla_minutes": calendar.config.sla_minutes,
            }
        )

        with log_latency(logger, "events_fetch"):
            outcome = await self._event_source.fetch_events(
                account_url, access_token, from_timestamp, to_timestamp,
                TRACKED_EVENT_TYPES, cancel_event
            )

        report = build_report(outcome, calendar, lead_ids)

        if cache_key is not None and report.fetch_complete:
            self._cache.set(cache_key, report)

        return report
