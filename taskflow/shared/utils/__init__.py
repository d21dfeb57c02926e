"""Shared utilities: datetime and generators."""

from taskflow.shared.utils.datetime import (
    add_days,
    add_months,
    ensure_utc,
    parse_calendar_date,
    utc_now,
    utc_today,
)
from taskflow.shared.utils.generators import generate_series_id

__all__ = [
    "add_days",
    "add_months",
    "ensure_utc",
    "generate_series_id",
    "parse_calendar_date",
    "utc_now",
    "utc_today",
]
