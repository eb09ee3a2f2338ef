"""
Response Pairing Engine
=======================

Reconstructs "agent answered customer" pairs per conversation and
attributes each pair to the agent responsible when the customer wrote in.

Conversations are independent of each other. Within one conversation the
pairing is strictly sequential: a single cursor walks the outgoing messages
so that every reply answers at most one customer message.
"""

from bisect import bisect_right
from typing import Iterable, List, Optional

from src.response_time.domain.calendar import BusinessCalendar
from src.response_time.domain.entities import (
    ConversationTimeline, Event, OwnershipChange, ResponsePair, UNASSIGNED_USER_ID
)
from src.response_time.domain.grouping import GroupedEvents
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class OwnershipHistory:
    """Ownership changes of one conversation, ordered by time."""

    def __init__(self, changes: Iterable[OwnershipChange]):
        self._changes = sorted(changes, key=lambda change: change.at)
        self._times = [change.at for change in self._changes]

    def __len__(self) -> int:
        return len(self._changes)

    def responsible_at(self, t: int) -> Optional[int]:
        """User of the last change at or before `t`, if any."""
        index = bisect_right(self._times, t)
        if index == 0:
            return None
        return self._changes[index - 1].user_id


def pair_conversation(
    timeline: ConversationTimeline,
    calendar: BusinessCalendar
) -> List[ResponsePair]:
    """
    Pair each customer message with the first unused reply after it.

    Processing of a conversation stops at the first customer message with
    no later reply left; the remaining customer messages yield nothing.
    """
    incoming = sorted(timeline.incoming, key=lambda event: event.created_at)
    outgoing = sorted(timeline.outgoing, key=lambda event: event.created_at)
    history = OwnershipHistory(timeline.ownership_changes)

    pairs: List[ResponsePair] = []
    cursor = 0

    for message in incoming:
        # A reply sent before or together with the message cannot answer it.
        while cursor < len(outgoing) and outgoing[cursor].created_at <= message.created_at:
            cursor += 1
        if cursor >= len(outgoing):
            break

        reply = outgoing[cursor]
        cursor += 1

        pairs.append(
            ResponsePair(
                entity_id=timeline.entity_id,
                incoming_at=message.created_at,
                outgoing_at=reply.created_at,
                response_minutes=calendar.business_minutes_between(
                    message.created_at, reply.created_at
                ),
                responsible_user_id=_responsible_user(history, message, reply),
            )
        )

    return pairs


def _responsible_user(history: OwnershipHistory, message: Event, reply: Event) -> int:
    owner = history.responsible_at(message.created_at)
    if owner is not None:
        return owner
    if reply.actor_id is not None:
        return reply.actor_id
    return UNASSIGNED_USER_ID


def pair_conversations(
    grouped: GroupedEvents,
    calendar: BusinessCalendar,
    entity_ids: Optional[Iterable[int]] = None
) -> List[ResponsePair]:
    """
    Run the pairing engine over every conversation.

    A conversation whose data breaks pairing is logged and skipped; it
    never affects the pairs of other conversations.
    """
    pairs: List[ResponsePair] = []
    skipped = 0

    for timeline in grouped.timelines(entity_ids):
        try:
            pairs.extend(pair_conversation(timeline, calendar))
        except (TypeError, ValueError, OverflowError) as e:
            skipped += 1
            logger.warning(
                "Skipping conversation with unpairable events",
                extra={"entity_id": timeline.entity_id, "error": str(e)}
            )

    if skipped:
        logger.info(
            "Pairing finished with skipped conversations",
            extra={"skipped_conversations": skipped, "pairs": len(pairs)}
        )

    return pairs
