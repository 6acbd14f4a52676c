"""Time, timezone and clock utilities."""

from datetime import datetime, time, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

UTC = ZoneInfo("UTC")

WEEKDAY_NAMES = [
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
]


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock, always timezone-aware UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """A clock that only moves when told to. Used by tests and replays."""

    def __init__(self, now: datetime):
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, **kwargs: float) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now


def to_utc(dt: datetime, tz: str) -> datetime:
    """Convert a datetime to UTC, treating naive values as local to tz."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=ZoneInfo(tz))
    return dt.astimezone(UTC)


def from_utc(dt: datetime, tz: str) -> datetime:
    """Convert a UTC datetime to the given timezone."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(ZoneInfo(tz))


def parse_hhmm(value: str) -> time:
    """Parse an HH:MM string, accepting a single-digit hour."""
    hours, _, minutes = value.partition(":")
    if not hours.isdigit() or not minutes.isdigit() or len(minutes) != 2:
        raise ValueError(f"Invalid time of day: {value!r}")
    return time(int(hours), int(minutes))


def is_valid_hhmm(value: str) -> bool:
    try:
        parse_hhmm(value)
    except ValueError:
        return False
    return True


def minutes_of_day(value: time | datetime | str) -> int:
    """Minutes since midnight for a wall-clock time."""
    if isinstance(value, str):
        value = parse_hhmm(value)
    return value.hour * 60 + value.minute


def format_hhmm(value: time | datetime) -> str:
    return f"{value.hour:02d}:{value.minute:02d}"


def day_of_week(dt: datetime) -> int:
    """Day of week with 0 = Sunday, 6 = Saturday."""
    return (dt.weekday() + 1) % 7


def time_slot(dt: datetime, slot_minutes: int) -> str:
    """Bucket key (HH:MM) of the slot that contains dt's wall-clock time."""
    minutes = minutes_of_day(dt)
    start = minutes - minutes % slot_minutes
    return f"{start // 60:02d}:{start % 60:02d}"


def is_time_in_window(value: time | datetime, start: str, end: str) -> bool:
    """Check whether a wall-clock time falls inside an inclusive window.

    Windows whose start is after their end span midnight, so 22:00-08:00
    contains both 23:30 and 07:59.
    """
    current = minutes_of_day(value)
    start_minutes = minutes_of_day(start)
    end_minutes = minutes_of_day(end)

    if start_minutes <= end_minutes:
        return start_minutes <= current <= end_minutes
    # Overnight window (e.g., 22:00 to 08:00)
    return current >= start_minutes or current <= end_minutes


def is_in_quiet_hours(dt: datetime, quiet_start: str, quiet_end: str, tz: str) -> bool:
    """Check if a UTC datetime falls within the user's quiet hours.

    Args:
        dt: The datetime to check (UTC)
        quiet_start: Start time in HH:MM format (24-hour)
        quiet_end: End time in HH:MM format (24-hour)
        tz: User's timezone

    Returns:
        True if the datetime is within quiet hours
    """
    return is_time_in_window(from_utc(dt, tz), quiet_start, quiet_end)


def next_window_end(local_dt: datetime, end: str) -> datetime:
    """First instant at or after local_dt's minute whose wall clock equals end.

    Stays on the same calendar day when possible, otherwise rolls to the next.
    """
    end_time = parse_hhmm(end)
    candidate = local_dt.replace(
        hour=end_time.hour, minute=end_time.minute, second=0, microsecond=0
    )
    if candidate < local_dt.replace(second=0, microsecond=0):
        candidate += timedelta(days=1)
    return candidate


def format_duration(minutes: int) -> str:
    """Format minutes into a human-readable duration.

    Examples:
        15 -> "15 minutes"
        60 -> "1 hour"
        90 -> "1.5 hours"
        1440 -> "1 day"
    """
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    elif minutes < 1440:
        hours = minutes / 60
        if hours == int(hours):
            return f"{int(hours)} hour{'s' if hours != 1 else ''}"
        return f"{hours:.1f} hours"
    else:
        days = minutes / 1440
        if days == int(days):
            return f"{int(days)} day{'s' if days != 1 else ''}"
        return f"{days:.1f} days"


def format_relative_time(dt: datetime, now: datetime) -> str:
    """Format a datetime relative to now.

    Examples:
        "in 5 minutes"
        "in 2 hours"
        "tomorrow"
        "2 hours ago"
    """
    total_seconds = (dt - now).total_seconds()

    if total_seconds < 0:
        abs_seconds = abs(total_seconds)
        if abs_seconds < 3600:
            minutes = int(abs_seconds / 60)
            return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
        elif abs_seconds < 86400:
            hours = int(abs_seconds / 3600)
            return f"{hours} hour{'s' if hours != 1 else ''} ago"
        else:
            days = int(abs_seconds / 86400)
            return f"{days} day{'s' if days != 1 else ''} ago"
    else:
        if total_seconds < 3600:
            minutes = int(total_seconds / 60)
            return f"in {minutes} minute{'s' if minutes != 1 else ''}"
        elif total_seconds < 86400:
            hours = int(total_seconds / 3600)
            return f"in {hours} hour{'s' if hours != 1 else ''}"
        elif total_seconds < 172800:  # 2 days
            return "tomorrow"
        else:
            days = int(total_seconds / 86400)
            return f"in {days} days"
