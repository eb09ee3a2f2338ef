"""
Response-Time Application Layer
===============================

Application layer for response-time analytics.

Contains:
- Services: Orchestrate the fetch/group/pair/aggregate pipeline
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and on interfaces for the event
feed, configuration and cache, but not on concrete infrastructure.
"""

from src.response_time.application.dto import (
    UserRef,
    ResponseTimeRequest,
    UserMetricsResponse,
    OverallMetricsResponse,
    ResponseTimeResponse,
    BusinessHoursResponse,
)
from src.response_time.application.services import (
    ResponseTimeService,
    IEventSource,
    IBusinessHoursProvider,
    IReportCache,
    build_report,
    report_cache_key,
)

__all__ = [
    # DTOs
    "UserRef",
    "ResponseTimeRequest",
    "UserMetricsResponse",
    "OverallMetricsResponse",
    "ResponseTimeResponse",
    "BusinessHoursResponse",
    # Services
    "ResponseTimeService",
    "build_report",
    "report_cache_key",
    # Interfaces
    "IEventSource",
    "IBusinessHoursProvider",
    "IReportCache",
]
