"""Tests for /remind time parsing."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from focusnudge.parser.when import parse_when

UTC = ZoneInfo("UTC")
NOW = datetime(2026, 3, 4, 12, 0, tzinfo=UTC)


def test_now():
    assert parse_when("now", "UTC", NOW) == NOW


def test_now_drops_seconds():
    assert parse_when("now", "UTC", NOW + timedelta(seconds=42, microseconds=7)) == NOW


@pytest.mark.asyncio
async def test_now_keeps_its_time_through_creation(service, make_request, clock):
    clock.advance(seconds=42)
    scheduled = parse_when("now", "UTC", clock.now())

    reminder = await service.create_reminder(make_request(scheduled_time=scheduled))

    assert reminder.scheduled_time == scheduled


def test_relative():
    assert parse_when("in 30 minutes", "UTC", NOW) == datetime(2026, 3, 4, 12, 30, tzinfo=UTC)
    assert parse_when("in 2h", "UTC", NOW) == datetime(2026, 3, 4, 14, 0, tzinfo=UTC)
    assert parse_when("in 1 day", "UTC", NOW) == datetime(2026, 3, 5, 12, 0, tzinfo=UTC)


def test_time_later_today():
    assert parse_when("15:30", "UTC", NOW) == datetime(2026, 3, 4, 15, 30, tzinfo=UTC)


def test_passed_time_rolls_to_tomorrow():
    assert parse_when("09:00", "UTC", NOW) == datetime(2026, 3, 5, 9, 0, tzinfo=UTC)


def test_tomorrow():
    assert parse_when("tomorrow 9am", "UTC", NOW) == datetime(2026, 3, 5, 9, 0, tzinfo=UTC)
    assert parse_when("tomorrow", "UTC", NOW) == datetime(2026, 3, 5, 9, 0, tzinfo=UTC)


def test_explicit_date():
    assert parse_when("2026-03-10 09:00", "UTC", NOW) == datetime(2026, 3, 10, 9, 0, tzinfo=UTC)


def test_local_timezone():
    # 07:00 in New York (EST, UTC-5)
    result = parse_when("15:30", "America/New_York", NOW)
    assert result == datetime(2026, 3, 4, 20, 30, tzinfo=UTC)


def test_rejects_garbage():
    with pytest.raises(ValueError):
        parse_when("", "UTC", NOW)
    with pytest.raises(ValueError):
        parse_when("blah blah", "UTC", NOW)
