"""Unit tests for the business-hours calendar."""

from datetime import date, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from src.core.exceptions import ConfigurationException
from src.response_time.domain import BusinessCalendar, BusinessHoursConfig, resolve_timezone
from tests.factories import monday_at


class TestAdvanceToBusinessInstant:
    """Tests for moving instants onto business time."""

    def test_inside_business_hours_unchanged(self, calendar: BusinessCalendar) -> None:
        t = monday_at(10, 30)
        assert calendar.advance_to_business_instant(t) == t

    def test_opening_instant_unchanged(self, calendar: BusinessCalendar) -> None:
        t = monday_at(8)
        assert calendar.advance_to_business_instant(t) == t

    def test_before_opening_moves_to_same_day_opening(self, calendar: BusinessCalendar) -> None:
        assert calendar.advance_to_business_instant(monday_at(6, 45)) == monday_at(8)

    def test_end_hour_is_closed(self, calendar: BusinessCalendar) -> None:
        """18:00 is outside [8, 18) and moves to the next morning."""
        assert calendar.advance_to_business_instant(monday_at(18)) == monday_at(8, day_offset=1)

    def test_late_evening_moves_to_next_opening(self, calendar: BusinessCalendar) -> None:
        assert calendar.advance_to_business_instant(monday_at(23, 50)) == monday_at(8, day_offset=1)

    def test_friday_evening_skips_weekend(self, calendar: BusinessCalendar) -> None:
        friday_evening = monday_at(19, day_offset=4)
        next_monday = monday_at(8, day_offset=7)
        assert calendar.advance_to_business_instant(friday_evening) == next_monday

    def test_saturday_midday_skips_to_monday(self, calendar: BusinessCalendar) -> None:
        saturday = monday_at(11, day_offset=5)
        assert calendar.advance_to_business_instant(saturday) == monday_at(8, day_offset=7)

    def test_weekend_days_count_when_configured(self) -> None:
        every_day = BusinessCalendar(BusinessHoursConfig(days=[0, 1, 2, 3, 4, 5, 6]))
        saturday = monday_at(11, day_offset=5)
        assert every_day.advance_to_business_instant(saturday) == saturday

    def test_idempotent(self, calendar: BusinessCalendar) -> None:
        for t in (monday_at(3), monday_at(12), monday_at(20), monday_at(9, day_offset=5)):
            once = calendar.advance_to_business_instant(t)
            assert calendar.advance_to_business_instant(once) == once

    def test_never_moves_backwards(self, calendar: BusinessCalendar) -> None:
        start = monday_at(0)
        previous = calendar.advance_to_business_instant(start)
        for step in range(1, 7 * 24 * 4):
            t = start + step * 15 * 60
            adjusted = calendar.advance_to_business_instant(t)
            assert adjusted >= t
            assert adjusted >= previous
            previous = adjusted


class TestBusinessMinutesBetween:
    """Tests for elapsed business minutes."""

    def test_simple_interval(self, calendar: BusinessCalendar) -> None:
        assert calendar.business_minutes_between(monday_at(8), monday_at(8, 15)) == 15

    def test_overnight_message_counts_from_next_opening(self, calendar: BusinessCalendar) -> None:
        minutes = calendar.business_minutes_between(
            monday_at(23, 50), monday_at(8, 5, day_offset=1)
        )
        assert minutes == 5

    def test_both_outside_hours_is_zero(self, calendar: BusinessCalendar) -> None:
        """Both instants advance to the same opening."""
        assert calendar.business_minutes_between(monday_at(19), monday_at(22)) == 0

    def test_reversed_interval_clamped(self, calendar: BusinessCalendar) -> None:
        assert calendar.business_minutes_between(monday_at(10), monday_at(9)) == 0

    def test_weekend_gap_excluded(self, calendar: BusinessCalendar) -> None:
        friday_evening = monday_at(20, day_offset=4)
        next_monday = monday_at(8, 30, day_offset=7)
        assert calendar.business_minutes_between(friday_evening, next_monday) == 30

    def test_utc_calendar_from_epoch(self) -> None:
        """t=0 is Thursday 00:00 UTC; with an 00-24 all-week calendar nothing is skipped."""
        config = BusinessHoursConfig(start_hour=0, end_hour=24, days=list(range(7)))
        utc_calendar = BusinessCalendar(config, timezone.utc)
        assert utc_calendar.business_minutes_between(0, 900) == 15


class TestBusinessDays:
    """Tests for weekday handling."""

    def test_weekday_numbering_starts_on_sunday(self, calendar: BusinessCalendar) -> None:
        assert not calendar.is_business_day(date(2024, 6, 2))  # Sunday
        assert calendar.is_business_day(date(2024, 6, 3))  # Monday
        assert calendar.is_business_day(date(2024, 6, 7))  # Friday
        assert not calendar.is_business_day(date(2024, 6, 8))  # Saturday

    def test_is_business_instant(self, calendar: BusinessCalendar) -> None:
        assert calendar.is_business_instant(monday_at(9))
        assert not calendar.is_business_instant(monday_at(7, 59))
        assert not calendar.is_business_instant(monday_at(18))
        assert not calendar.is_business_instant(monday_at(9, day_offset=6))


class TestResolveTimezone:
    """Tests for time zone configuration parsing."""

    @pytest.mark.parametrize("name,hours", [
        ("-03:00", -3),
        ("+05:30", 5.5),
        ("+0530", 5.5),
        ("UTC-3", -3),
        ("UTC", 0),
        ("Z", 0),
    ])
    def test_fixed_offsets(self, name: str, hours: float) -> None:
        tz = resolve_timezone(name)
        assert tz.utcoffset(None) == timedelta(hours=hours)

    def test_iana_name(self) -> None:
        assert resolve_timezone("America/Sao_Paulo") == ZoneInfo("America/Sao_Paulo")

    def test_unknown_name_rejected(self) -> None:
        with pytest.raises(ConfigurationException):
            resolve_timezone("Mars/Olympus_Mons")

    def test_out_of_range_offset_rejected(self) -> None:
        with pytest.raises(ConfigurationException):
            resolve_timezone("+25:00")
