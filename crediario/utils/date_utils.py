"""Date manipulation utilities"""

from datetime import date
from typing import List
from dateutil.relativedelta import relativedelta


def add_months(from_date: date, months: int) -> date:
    """
    Add calendar months to a date, clamping to the last day of the target month.

    Example:
        2024-01-31 + 1 month → 2024-02-29
        2023-01-31 + 1 month → 2023-02-28
    """
    return from_date + relativedelta(months=months)


def monthly_dates(first: date, count: int) -> List[date]:
    """Generate `count` dates one calendar month apart, each offset from `first`"""
    # Offsetting from `first` (not chaining) keeps Jan 31 → Feb 29 → Mar 31
    return [add_months(first, i) for i in range(count)]


def month_start(day: date) -> date:
    """First day of the month containing `day`"""
    return day.replace(day=1)


def days_overdue(due_date: date, as_of: date) -> int:
    """Days elapsed past the due date (0 when not yet due)"""
    return max((as_of - due_date).days, 0)
