"""
Response-Time Domain Layer
==========================

Domain layer for response-time analytics.

Contains:
- Entities: events, conversation timelines, response pairs, reports
- Value Objects: BusinessHoursConfig
- Domain Services: calendar, grouping, pairing and statistics

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from src.response_time.domain.entities import (
    Event,
    OwnershipChange,
    ConversationTimeline,
    ResponsePair,
    LatencySummary,
    UserLatency,
    FetchOutcome,
    ResponseTimeReport,
    UNASSIGNED_USER_ID,
)
from src.response_time.domain.value_objects import BusinessHoursConfig
from src.response_time.domain.calendar import (
    BusinessCalendar, DEFAULT_TIMEZONE, resolve_timezone
)
from src.response_time.domain.grouping import GroupedEvents, group_events
from src.response_time.domain.pairing import pair_conversation, pair_conversations
from src.response_time.domain.statistics import aggregate, summarize

__all__ = [
    # Entities
    "Event",
    "OwnershipChange",
    "ConversationTimeline",
    "ResponsePair",
    "LatencySummary",
    "UserLatency",
    "FetchOutcome",
    "ResponseTimeReport",
    "UNASSIGNED_USER_ID",
    # Value Objects
    "BusinessHoursConfig",
    # Domain Services
    "BusinessCalendar",
    "DEFAULT_TIMEZONE",
    "resolve_timezone",
    "GroupedEvents",
    "group_events",
    "pair_conversation",
    "pair_conversations",
    "aggregate",
    "summarize",
]
