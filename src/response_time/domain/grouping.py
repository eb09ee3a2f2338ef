"""
Event Classification and Grouping
=================================

Splits the raw event stream into its three channels (incoming message,
outgoing message, ownership change) and groups each by conversation.

No deduplication happens here: a duplicated event from a retried feed page
stays in the stream.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional

from src.config import EventType
from src.response_time.domain.entities import ConversationTimeline, Event, OwnershipChange


@dataclass
class GroupedEvents:
    """Events of each channel keyed by conversation (entity) id."""

    incoming_by_entity: Dict[int, List[Event]] = field(default_factory=dict)
    outgoing_by_entity: Dict[int, List[Event]] = field(default_factory=dict)
    ownership_by_entity: Dict[int, List[OwnershipChange]] = field(default_factory=dict)
    dropped: int = 0

    @property
    def incoming_count(self) -> int:
        return sum(len(events) for events in self.incoming_by_entity.values())

    @property
    def outgoing_count(self) -> int:
        return sum(len(events) for events in self.outgoing_by_entity.values())

    @property
    def ownership_change_count(self) -> int:
        return sum(len(changes) for changes in self.ownership_by_entity.values())

    def timeline(self, entity_id: int) -> ConversationTimeline:
        """All three channels of one conversation."""
        return ConversationTimeline(
            entity_id=entity_id,
            incoming=list(self.incoming_by_entity.get(entity_id, [])),
            outgoing=list(self.outgoing_by_entity.get(entity_id, [])),
            ownership_changes=list(self.ownership_by_entity.get(entity_id, [])),
        )

    def timelines(self, entity_ids: Optional[Iterable[int]] = None) -> Iterator[ConversationTimeline]:
        """
        Timelines of conversations with customer messages, by ascending id.

        Conversations with no incoming message can produce no pairs and
        are skipped. `entity_ids` restricts the result to the given ids.
        """
        wanted = set(entity_ids) if entity_ids else None
        for entity_id in sorted(self.incoming_by_entity):
            if wanted is not None and entity_id not in wanted:
                continue
            yield self.timeline(entity_id)


def group_events(events: Iterable[Event]) -> GroupedEvents:
    """
    Classify events by type and group each channel by entity id.

    Every incoming/outgoing message lands in exactly one group. Ownership
    changes without a new responsible user carry nothing to attribute and
    are counted as dropped, as are events of any other type.
    """
    grouped = GroupedEvents()

    for event in events:
        if event.type == EventType.INCOMING_MESSAGE:
            grouped.incoming_by_entity.setdefault(event.entity_id, []).append(event)
        elif event.type == EventType.OUTGOING_MESSAGE:
            grouped.outgoing_by_entity.setdefault(event.entity_id, []).append(event)
        elif event.type == EventType.OWNERSHIP_CHANGED and event.new_responsible_id:
            grouped.ownership_by_entity.setdefault(event.entity_id, []).append(
                OwnershipChange(at=event.created_at, user_id=event.new_responsible_id)
            )
        else:
            grouped.dropped += 1

    return grouped
