"""Date manipulation utilities"""

from datetime import date, timedelta
from dateutil.relativedelta import relativedelta


def add_months(from_date: date, months: int) -> date:
    """
    Shift a date by whole calendar months.

    Days past the end of the target month are clamped to its last day:
    Jan 31 + 1 month = Feb 28 (Feb 29 in leap years).
    """
    return from_date + relativedelta(months=months)


def shift_by_periods(start: date, periods: int, frequency: str) -> date:
    """Shift ``start`` by ``periods`` months, weeks or days depending on frequency"""
    if frequency == "monthly":
        return add_months(start, periods)
    if frequency == "weekly":
        return start + timedelta(weeks=periods)
    return start + timedelta(days=periods)
