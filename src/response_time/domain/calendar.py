"""
Business-Hours Calendar
=======================

Maps absolute instants (epoch seconds) onto business time so that elapsed
response time excludes nights, weekends and other closed periods.

The time zone is injected. The default deployment uses a fixed UTC offset
(-03:00), which ignores daylight-saving rules; pass an IANA zone name to
`resolve_timezone` to get full `zoneinfo` semantics instead.
"""

import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.core.exceptions import ConfigurationException
from src.response_time.domain.value_objects import BusinessHoursConfig

_OFFSET_PATTERN = re.compile(r"^(?:UTC)?([+-])(\d{1,2}):?(\d{2})?$")

DEFAULT_TIMEZONE = timezone(timedelta(hours=-3))


def resolve_timezone(name: str) -> tzinfo:
    """
    Resolve a configured time zone.

    Accepts fixed offsets ("-03:00", "+0530", "UTC-3") and IANA names
    ("America/Sao_Paulo"). "UTC" and "Z" map to UTC.

    Raises:
        ConfigurationException: if the name is neither.
    """
    value = name.strip()
    if value.upper() in ("UTC", "Z"):
        return timezone.utc

    match = _OFFSET_PATTERN.match(value)
    if match:
        sign, hours, minutes = match.groups()
        offset = timedelta(hours=int(hours), minutes=int(minutes or 0))
        if offset >= timedelta(hours=24):
            raise ConfigurationException(f"UTC offset out of range: {name}")
        return timezone(-offset if sign == "-" else offset)

    try:
        return ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationException(
            f"Unknown business time zone: {name}",
            {"timezone": name, "error": str(e)}
        )


def to_calendar_weekday(moment: datetime) -> int:
    """Weekday with 0=Sunday .. 6=Saturday."""
    return (moment.weekday() + 1) % 7


class BusinessCalendar:
    """
    Business-time arithmetic for one configuration and time zone.

    Stateless apart from its configuration; safe to share between threads.
    """

    def __init__(self, config: BusinessHoursConfig, tz: tzinfo = DEFAULT_TIMEZONE):
        self.config = config
        self.tz = tz
        self._days = frozenset(config.days)

    def local_time(self, t: float) -> datetime:
        return datetime.fromtimestamp(t, self.tz)

    def is_business_day(self, day: date) -> bool:
        return (day.weekday() + 1) % 7 in self._days

    def is_business_instant(self, t: float) -> bool:
        """Whether `t` falls inside [start_hour, end_hour) on a business day."""
        local = self.local_time(t)
        if to_calendar_weekday(local) not in self._days:
            return False
        return self.config.start_hour <= local.hour < self.config.end_hour

    def opening_of(self, day: date) -> float:
        """Epoch seconds of `start_hour` on the given local date."""
        opening = datetime.combine(day, time(hour=self.config.start_hour), tzinfo=self.tz)
        return opening.timestamp()

    def advance_to_business_instant(self, t: float) -> float:
        """
        Move `t` forward to the nearest business instant.

        Returns `t` itself when it is already inside business hours, the
        same day's opening when it is before `start_hour` on a business day,
        and otherwise the opening of the next business day. Idempotent and
        monotonic non-decreasing; never returns less than `t`.
        """
        if not self._days:
            return t

        local = self.local_time(t)
        day = local.date()

        if self.is_business_day(day):
            if local.hour < self.config.start_hour:
                return max(t, self.opening_of(day))
            if local.hour < self.config.end_hour:
                return t

        # A configured weekday is always reached within a week.
        for _ in range(7):
            day += timedelta(days=1)
            if self.is_business_day(day):
                return max(t, self.opening_of(day))

        return t

    def business_minutes_between(self, start: float, end: float) -> float:
        """Elapsed minutes between two instants after business adjustment, floored at 0."""
        adjusted_start = self.advance_to_business_instant(start)
        adjusted_end = self.advance_to_business_instant(end)
        return max(0.0, (adjusted_end - adjusted_start) / 60)
