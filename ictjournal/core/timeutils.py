"""
Date and time helpers shared by the parsers.

Calendar timestamps are produced in the same shape a browser's
Date.toISOString() gives: UTC, millisecond precision, "Z" suffix.
"""

import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

# Zone of pasted calendar text; must agree with IST_OFFSET_MINUTES.
# Independent of Config.display_timezone.
DISPLAY_TIMEZONE = "Asia/Kolkata"

# IST has no daylight saving, so the offset is a constant.
IST_OFFSET_MINUTES = 330

MINUTES_PER_DAY = 24 * 60

_TIME_LABEL_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?(am|pm)$")


def today_in_zone(tz_name: str = DISPLAY_TIMEZONE, now: Optional[datetime] = None) -> date:
    """
    Resolve the calendar date in the given time zone.

    Args:
        tz_name: IANA zone name
        now: Instant to resolve (defaults to the current time)

    Returns:
        The local date in that zone
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(tz_name)).date()


def parse_time_label_to_minutes(label: str) -> Optional[int]:
    """
    Convert a label like "9:30am" to minutes since midnight.

    "12" counts as hour 0 for both am and pm, then pm adds 12 hours,
    so "12:15am" -> 15 and "12:15pm" -> 735.
    """
    s = re.sub(r"\s+", "", label.strip().lower())
    match = _TIME_LABEL_RE.match(s)
    if not match:
        return None

    hours = int(match.group(1))
    minutes = int(match.group(2) or "0")
    if hours == 12:
        hours = 0
    if match.group(3) == "pm":
        hours += 12
    return hours * 60 + minutes


def ist_minutes_to_utc(day: date, minutes: int) -> datetime:
    """
    Build the UTC instant for an IST wall-clock time on a given IST day.

    Negative or overflowing minute totals roll into the adjacent day.
    """
    total_utc_minutes = minutes - IST_OFFSET_MINUTES
    midnight = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return midnight + timedelta(minutes=total_utc_minutes)


def format_iso_utc(value: datetime) -> str:
    """Format an instant as e.g. 2025-06-10T04:00:00.000Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def iso_from_ist_day(
    time_label: str,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Convert a calendar time label on the IST "today" to an ISO UTC string.

    Args:
        time_label: Label such as "9:30am"
        today: IST date the label belongs to (resolved from the clock if None)
        now: Fallback instant used when the label can't be parsed

    Returns:
        ISO-8601 UTC timestamp
    """
    minutes = parse_time_label_to_minutes(time_label)
    if minutes is None:
        return format_iso_utc(now or datetime.now(timezone.utc))

    if today is None:
        today = today_in_zone(DISPLAY_TIMEZONE, now)
    return format_iso_utc(ist_minutes_to_utc(today, minutes))


def parse_iso_datetime(value: str, default_tz: Optional[str] = None) -> Optional[datetime]:
    """
    Parse an ISO-8601 string, accepting a trailing "Z".

    Naive values are placed in default_tz (UTC when not given).
    Returns None for anything unparseable.
    """
    s = (value or "").strip()
    if not s:
        return None
    if s.endswith("Z") or s.endswith("z"):
        s = s[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(s)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        tz = ZoneInfo(default_tz) if default_tz else timezone.utc
        parsed = parsed.replace(tzinfo=tz)
    return parsed
