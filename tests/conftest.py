"""Shared fixtures for response-time tests."""

import pytest

from src.response_time.domain import DEFAULT_TIMEZONE, BusinessCalendar, BusinessHoursConfig


@pytest.fixture
def business_hours() -> BusinessHoursConfig:
    """Mon-Fri 08:00-18:00 with a 10 minute SLA."""
    return BusinessHoursConfig()


@pytest.fixture
def calendar(business_hours: BusinessHoursConfig) -> BusinessCalendar:
    return BusinessCalendar(business_hours, DEFAULT_TIMEZONE)
