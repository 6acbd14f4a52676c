"""Parse the <when> part of /remind into a UTC datetime."""

import re
from datetime import datetime

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from focusnudge.utils.time_utils import from_utc, to_utc

RELATIVE_PATTERN = re.compile(
    r"^in\s+(\d+)\s*(minutes?|mins?|m|hours?|hrs?|h|days?|d|weeks?|w|months?)$",
    re.IGNORECASE,
)

UNIT_KEYWORDS = {
    "m": "minutes",
    "min": "minutes",
    "mins": "minutes",
    "minute": "minutes",
    "minutes": "minutes",
    "h": "hours",
    "hr": "hours",
    "hrs": "hours",
    "hour": "hours",
    "hours": "hours",
    "d": "days",
    "day": "days",
    "days": "days",
    "w": "weeks",
    "week": "weeks",
    "weeks": "weeks",
    "month": "months",
    "months": "months",
}


def normalize_relative(value: int, unit: str, now_local: datetime) -> datetime:
    """in X minutes/hours/days/weeks/months."""
    keyword = UNIT_KEYWORDS.get(unit.lower())
    if keyword is None:
        raise ValueError(f"Unknown time unit: {unit}")
    return now_local + relativedelta(**{keyword: value})


def parse_when(text: str, timezone: str, now: datetime) -> datetime:
    """Parse a user's time expression in their timezone.

    Accepts "now", "in 30 minutes", "tomorrow 9am" style relative phrases
    and anything dateutil understands ("15:30", "2024-03-01 09:00").
    A bare time that already passed today means tomorrow.

    Raises:
        ValueError: if the text is not a recognizable time
    """
    text = text.strip()
    now_local = from_utc(now, timezone).replace(second=0, microsecond=0)

    if not text:
        raise ValueError("No time given")

    if text.lower() == "now":
        return to_utc(now_local, timezone)

    match = RELATIVE_PATTERN.match(text)
    if match:
        return to_utc(normalize_relative(int(match.group(1)), match.group(2), now_local), timezone)

    day_offset = 0
    lowered = text.lower()
    for word, offset in (("tomorrow", 1), ("today", 0)):
        if lowered.startswith(word):
            day_offset = offset
            text = text[len(word):].strip() or "09:00"
            break
    else:
        word = None

    try:
        parsed = date_parser.parse(text, default=now_local.replace(tzinfo=None))
    except (date_parser.ParserError, OverflowError) as e:
        raise ValueError(f"Could not understand time: {text}") from e

    if parsed.tzinfo is not None:
        parsed = from_utc(parsed, timezone).replace(tzinfo=None)

    parsed += relativedelta(days=day_offset)

    # A time of day with no date that already passed rolls to tomorrow
    if word is None and not _has_date(text) and to_utc(parsed, timezone) < now:
        parsed += relativedelta(days=1)

    return to_utc(parsed, timezone)


def _has_date(text: str) -> bool:
    return bool(re.search(r"\d{1,4}[-/.]\d{1,2}|[a-z]{3,}", text, re.IGNORECASE))
