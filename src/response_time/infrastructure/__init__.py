"""
Response-Time Infrastructure Layer
==================================

Infrastructure implementations for response-time analytics:
- External: CRM events API client, business-hours config manager
- Cache: in-memory report cache
"""

from src.response_time.infrastructure.external import (
    CrmEventsClient,
    BusinessHoursConfigManager,
    parse_event,
)
from src.response_time.infrastructure.cache import ReportCache

__all__ = [
    "CrmEventsClient",
    "BusinessHoursConfigManager",
    "parse_event",
    "ReportCache",
]
