"""
Date and time utility classes for the engine.

All persisted timestamps are naive UTC; this module is the single place
that produces them.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Callable

from dateutil.relativedelta import relativedelta

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Current time as naive UTC, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class DateTimeHelper:
    """Date arithmetic used by the negotiation and booking flows"""

    @staticmethod
    def add_days(moment: datetime, days: int) -> datetime:
        return moment + timedelta(days=days)

    @staticmethod
    def add_months(start: date, months: int) -> date:
        """
        Add calendar months, clamping to the last day of the target month.

        2025-01-31 + 1 month -> 2025-02-28.
        """
        return start + relativedelta(months=months)

    @staticmethod
    def is_past(moment: date, now: date) -> bool:
        return moment < now


__all__ = ["Clock", "utcnow", "DateTimeHelper"]
