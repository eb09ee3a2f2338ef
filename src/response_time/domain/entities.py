"""
Response-Time Domain Entities
=============================

Pure Python domain objects for response-time analytics.

Everything here is created fresh for one analytics run and discarded once
the report is returned. Nothing is persisted between runs.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict

from src.config import FetchStopReason

# Attribution used when neither an ownership change nor the replying
# agent identifies who was responsible.
UNASSIGNED_USER_ID = 0


@dataclass(frozen=True)
class Event:
    """
    A CRM timeline event as delivered by the event feed.

    Events are read-only: the engine never mutates them.
    """

    id: str
    type: str
    entity_id: int
    created_at: int
    actor_id: Optional[int] = None
    new_responsible_id: Optional[int] = None


@dataclass(frozen=True)
class OwnershipChange:
    """Responsible-user change on a conversation."""

    at: int
    user_id: int


@dataclass
class ConversationTimeline:
    """
    The three event channels of one conversation (CRM entity).

    Lists are in feed order; the pairing engine sorts copies before use.
    """

    entity_id: int
    incoming: List[Event] = field(default_factory=list)
    outgoing: List[Event] = field(default_factory=list)
    ownership_changes: List[OwnershipChange] = field(default_factory=list)


@dataclass(frozen=True)
class ResponsePair:
    """A customer message matched with the agent reply that answered it."""

    entity_id: int
    incoming_at: int
    outgoing_at: int
    response_minutes: float
    responsible_user_id: int

    def __post_init__(self):
        if self.response_minutes < 0:
            raise ValueError("response_minutes cannot be negative")


@dataclass(frozen=True)
class LatencySummary:
    """Descriptive statistics over a set of response times (minutes)."""

    count: int = 0
    mean: float = 0.0
    median: float = 0.0
    p90: float = 0.0
    within_sla: int = 0
    sla_rate: float = 0.0


@dataclass(frozen=True)
class UserLatency:
    """Latency statistics attributed to one responsible user."""

    user_id: int
    summary: LatencySummary


@dataclass
class FetchOutcome:
    """
    Result of a paginated event fetch.

    A fetch never fails outright; instead it reports how far it got.
    `complete` is False whenever pagination stopped for any reason other
    than reaching the end of the feed.
    """

    events: List["Event"] = field(default_factory=list)
    pages_fetched: int = 0
    stop_reason: str = FetchStopReason.EXHAUSTED
    raw_event_count: int = 0

    @property
    def complete(self) -> bool:
        return self.stop_reason == FetchStopReason.EXHAUSTED


@dataclass
class ResponseTimeReport:
    """Full output of one analytics run."""

    user_metrics: List[UserLatency]
    overall: LatencySummary
    total_pairs: int
    total_events_processed: int
    sla_minutes: int
    fetch_complete: bool = True
    fetch_stop_reason: str = FetchStopReason.EXHAUSTED
    pages_fetched: int = 0
    from_cache: bool = False

    def user_ids(self) -> List[int]:
        return [metric.user_id for metric in self.user_metrics]

    def by_user(self) -> Dict[int, LatencySummary]:
        return {metric.user_id: metric.summary for metric in self.user_metrics}
