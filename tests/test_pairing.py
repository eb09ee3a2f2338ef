"""Unit tests for the response pairing engine."""

import pytest

from src.response_time.domain import (
    BusinessCalendar, ConversationTimeline, OwnershipChange, UNASSIGNED_USER_ID,
    group_events, pair_conversation, pair_conversations
)
from src.response_time.domain.pairing import OwnershipHistory
from tests.factories import incoming, make_event, monday_at, outgoing, ownership


def _pairs(events, calendar):
    return pair_conversations(group_events(events), calendar)


class TestPairConversation:
    """Tests for the per-conversation cursor algorithm."""

    def test_single_pair(self, calendar: BusinessCalendar) -> None:
        pairs = _pairs([incoming(1, monday_at(8)), outgoing(1, monday_at(8, 15), actor_id=3)], calendar)

        assert len(pairs) == 1
        assert pairs[0].entity_id == 1
        assert pairs[0].incoming_at == monday_at(8)
        assert pairs[0].outgoing_at == monday_at(8, 15)
        assert pairs[0].response_minutes == 15

    def test_burst_of_messages_answered_once(self, calendar: BusinessCalendar) -> None:
        """Three customer messages and one reply give one pair, for the first message."""
        events = [
            incoming(1, monday_at(9)),
            incoming(1, monday_at(9, 1)),
            incoming(1, monday_at(9, 2)),
            outgoing(1, monday_at(9, 10)),
        ]

        pairs = _pairs(events, calendar)

        assert len(pairs) == 1
        assert pairs[0].incoming_at == monday_at(9)
        assert pairs[0].response_minutes == 10

    def test_alternating_messages(self, calendar: BusinessCalendar) -> None:
        events = [
            incoming(1, monday_at(9)),
            outgoing(1, monday_at(9, 5)),
            incoming(1, monday_at(9, 10)),
            outgoing(1, monday_at(9, 30)),
        ]

        pairs = _pairs(events, calendar)

        assert [pair.response_minutes for pair in pairs] == [5, 20]

    def test_each_reply_used_at_most_once(self, calendar: BusinessCalendar) -> None:
        events = [incoming(1, monday_at(9, n)) for n in range(5)]
        events += [outgoing(1, monday_at(10, n)) for n in range(3)]

        pairs = _pairs(events, calendar)

        assert len(pairs) == 3
        assert len({pair.outgoing_at for pair in pairs}) == 3
        assert all(pair.outgoing_at > pair.incoming_at for pair in pairs)

    def test_earlier_reply_ignored(self, calendar: BusinessCalendar) -> None:
        events = [
            outgoing(1, monday_at(8, 50)),
            incoming(1, monday_at(9)),
            outgoing(1, monday_at(9, 4)),
        ]

        pairs = _pairs(events, calendar)

        assert len(pairs) == 1
        assert pairs[0].outgoing_at == monday_at(9, 4)

    def test_simultaneous_reply_does_not_answer(self, calendar: BusinessCalendar) -> None:
        assert _pairs([incoming(1, monday_at(9)), outgoing(1, monday_at(9))], calendar) == []

    def test_no_replies(self, calendar: BusinessCalendar) -> None:
        assert _pairs([incoming(1, monday_at(9)), incoming(1, monday_at(10))], calendar) == []

    def test_unsorted_input(self, calendar: BusinessCalendar) -> None:
        events = [
            outgoing(1, monday_at(9, 30)),
            incoming(1, monday_at(9, 10)),
            outgoing(1, monday_at(9, 5)),
            incoming(1, monday_at(9)),
        ]

        pairs = _pairs(events, calendar)

        assert [pair.response_minutes for pair in pairs] == [5, 20]

    def test_overnight_message_uses_business_time(self, calendar: BusinessCalendar) -> None:
        events = [incoming(1, monday_at(23, 50)), outgoing(1, monday_at(8, 5, day_offset=1))]

        pairs = _pairs(events, calendar)

        assert pairs[0].response_minutes == 5

    def test_after_hours_reply_clamped_to_zero(self, calendar: BusinessCalendar) -> None:
        events = [incoming(1, monday_at(19)), outgoing(1, monday_at(21))]
        assert _pairs(events, calendar)[0].response_minutes == 0

    def test_conversations_independent(self, calendar: BusinessCalendar) -> None:
        """A reply in one conversation never answers a message in another."""
        events = [incoming(1, monday_at(9)), outgoing(2, monday_at(9, 5))]
        assert _pairs(events, calendar) == []


class TestAttribution:
    """Tests for the responsible user of a pair."""

    def test_owner_at_message_time(self, calendar: BusinessCalendar) -> None:
        events = [
            ownership(1, monday_at(8), user_id=7),
            incoming(1, monday_at(9)),
            ownership(1, monday_at(9, 2), user_id=8),
            outgoing(1, monday_at(9, 5), actor_id=8),
        ]

        assert _pairs(events, calendar)[0].responsible_user_id == 7

    def test_change_at_message_instant_counts(self, calendar: BusinessCalendar) -> None:
        events = [
            ownership(1, monday_at(9), user_id=11),
            incoming(1, monday_at(9)),
            outgoing(1, monday_at(9, 5), actor_id=3),
        ]

        assert _pairs(events, calendar)[0].responsible_user_id == 11

    def test_latest_prior_change_wins(self, calendar: BusinessCalendar) -> None:
        events = [
            ownership(1, monday_at(8, 30), user_id=8),
            ownership(1, monday_at(8), user_id=7),
            incoming(1, monday_at(9)),
            outgoing(1, monday_at(9, 5)),
        ]

        assert _pairs(events, calendar)[0].responsible_user_id == 8

    def test_falls_back_to_replying_agent(self, calendar: BusinessCalendar) -> None:
        events = [
            incoming(1, monday_at(9)),
            ownership(1, monday_at(9, 1), user_id=8),
            outgoing(1, monday_at(9, 5), actor_id=3),
        ]

        assert _pairs(events, calendar)[0].responsible_user_id == 3

    def test_unassigned_when_nobody_known(self, calendar: BusinessCalendar) -> None:
        events = [incoming(1, monday_at(9)), outgoing(1, monday_at(9, 5))]
        assert _pairs(events, calendar)[0].responsible_user_id == UNASSIGNED_USER_ID


class TestOwnershipHistory:
    """Tests for ownership lookups."""

    def test_before_first_change(self) -> None:
        history = OwnershipHistory([OwnershipChange(at=100, user_id=1)])
        assert history.responsible_at(99) is None

    def test_lookup(self) -> None:
        history = OwnershipHistory([
            OwnershipChange(at=300, user_id=3),
            OwnershipChange(at=100, user_id=1),
            OwnershipChange(at=200, user_id=2),
        ])
        assert len(history) == 3
        assert history.responsible_at(100) == 1
        assert history.responsible_at(250) == 2
        assert history.responsible_at(10_000) == 3


class TestPairConversations:
    """Tests for running the engine over many conversations."""

    def test_entity_filter(self, calendar: BusinessCalendar) -> None:
        events = [
            incoming(1, monday_at(9)), outgoing(1, monday_at(9, 5)),
            incoming(2, monday_at(9)), outgoing(2, monday_at(9, 6)),
        ]

        pairs = pair_conversations(group_events(events), calendar, entity_ids=[2])

        assert [pair.entity_id for pair in pairs] == [2]

    def test_broken_conversation_skipped(self, calendar: BusinessCalendar) -> None:
        events = [
            make_event("incoming_chat_message", 1, "not-a-timestamp"),
            outgoing(1, monday_at(9, 5)),
            incoming(2, monday_at(9)),
            outgoing(2, monday_at(9, 6)),
        ]

        pairs = pair_conversations(group_events(events), calendar)

        assert [pair.entity_id for pair in pairs] == [2]

    def test_direct_timeline(self, calendar: BusinessCalendar) -> None:
        timeline = ConversationTimeline(
            entity_id=9,
            incoming=[incoming(9, monday_at(9))],
            outgoing=[outgoing(9, monday_at(9, 1), actor_id=4)],
        )

        pairs = pair_conversation(timeline, calendar)

        assert pairs[0].responsible_user_id == 4
        assert pairs[0].response_minutes == pytest.approx(1)
