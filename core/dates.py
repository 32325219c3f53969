"""Calendar-day helpers shared by the models and due-date logic.

All comparisons happen between local calendar days, never by subtracting
raw timestamps, so a deadline later today is 0 days away regardless of the
time of day.
"""

from __future__ import annotations

from datetime import date, datetime


def as_calendar_date(value: date | datetime) -> date:
    """Reduce a date or datetime to its local calendar day."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    return value


def format_short_date(value: date) -> str:
    """Short numeric date such as `3/7/26`."""
    return f"{value.month}/{value.day}/{value:%y}"


def days_until_due(due_date: date | datetime | None, today: date | datetime | None = None) -> int | None:
    """Whole calendar days from `today` to `due_date`; None without a due date."""
    if due_date is None:
        return None
    start = as_calendar_date(today) if today is not None else date.today()
    return (as_calendar_date(due_date) - start).days
