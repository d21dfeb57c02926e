"""
UTC date/time utilities for consistent timezone handling.

All datetime values in the system are timezone-aware UTC, and calendar
comparisons (deadlines) use the current UTC day. Use these helpers instead
of datetime.now(), date.today() or ad-hoc parsing.
"""

import calendar
from datetime import UTC, date, datetime, timedelta


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def utc_today() -> date:
    """Return the current calendar day in UTC."""
    return utc_now().date()


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Use at repository/persistence boundaries to normalize datetimes.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def parse_calendar_date(value: date | datetime | str) -> date:
    """
    Parse a calendar date from a date, datetime or ISO-8601 string.

    Datetimes (and datetime strings) are reduced to their UTC calendar day;
    a trailing "Z" is accepted.

    Raises:
        ValueError: If the value cannot be read as a date
    """
    if isinstance(value, datetime):
        return ensure_utc(value).date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected a date, got {type(value).__name__}")
    text = value.strip()
    if not text:
        raise ValueError("Date string is empty")
    if len(text) == 10:
        return date.fromisoformat(text)
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text)).date()


def add_months(day: date, months: int) -> date:
    """
    Add calendar months, clamping the day to the end of the target month.

    Example: add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    """
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def add_days(day: date, days: int) -> date:
    """Return the date the given number of days later."""
    return day + timedelta(days=days)
