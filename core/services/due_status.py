"""Portfolio due-date classification.

Pure calendar arithmetic consumed by the portfolio screens and by the
notification scheduler, which decides on its own when to alert.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from core.dates import days_until_due
from core.models import DUE_SOON_DAYS, Portfolio


class DueStatus(str, Enum):
    NO_DUE_DATE = "no_due_date"
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    UPCOMING = "upcoming"


@dataclass(frozen=True)
class DueSummary:
    """Classification plus the day count it was derived from."""

    status: DueStatus
    days_until_due: int | None

    @property
    def label(self) -> str | None:
        """Short display label, e.g. "Overdue by 2 days" or "Due tomorrow"."""
        days = self.days_until_due
        if days is None:
            return None
        if days < 0:
            overdue = abs(days)
            return f"Overdue by {overdue} day{'' if overdue == 1 else 's'}"
        if days == 0:
            return "Due today"
        if days == 1:
            return "Due tomorrow"
        return f"Due in {days} days"


def classify_due_date(
    due_date: date | datetime | None,
    today: date | datetime | None = None,
    due_soon_days: int = DUE_SOON_DAYS,
) -> DueSummary:
    """Classify a due date relative to `today` (defaults to the current day)."""
    days = days_until_due(due_date, today)
    if days is None:
        status = DueStatus.NO_DUE_DATE
    elif days < 0:
        status = DueStatus.OVERDUE
    elif days <= due_soon_days:
        status = DueStatus.DUE_SOON
    else:
        status = DueStatus.UPCOMING
    return DueSummary(status=status, days_until_due=days)


def classify_portfolio(
    portfolio: Portfolio,
    today: date | datetime | None = None,
    due_soon_days: int = DUE_SOON_DAYS,
) -> DueSummary:
    return classify_due_date(portfolio.due_date, today, due_soon_days)
