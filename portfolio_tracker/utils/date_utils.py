# portfolio_tracker/utils/date_utils.py
"""
Date utility functions for the portfolio tracker.

Calendar arithmetic used when turning a look-back period into a date range.
Months are subtracted on the calendar, clamping the day to the target
month's length (31 March minus one month is 28/29 February).

Usage:
    from portfolio_tracker.utils.date_utils import subtract_months

    start = subtract_months(date(2024, 3, 31), 1)  # date(2024, 2, 29)
"""

import calendar
from datetime import date


def subtract_months(d: date, months: int) -> date:
    """
    Move a date back by a number of calendar months.

    Args:
        d: Starting date
        months: Number of months to go back (>= 0)

    Returns:
        The same day-of-month ``months`` months earlier, clamped to the
        last day of that month when it is shorter.

    Example:
        >>> subtract_months(date(2024, 5, 31), 3)
        datetime.date(2024, 2, 29)
    """
    if months < 0:
        raise ValueError(f"months must be non-negative, got {months}")

    month_index = d.year * 12 + (d.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(d.day, last_day))
