"""
Billing period and work week arithmetic.

Every function takes the reference moment explicitly so results are
reproducible. Inputs may be dates or datetimes; time of day is ignored
and all results are calendar dates.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Union

DateLike = Union[date, datetime]


def to_day(value: DateLike) -> date:
    """Strip the time of day from a date or datetime."""
    if isinstance(value, datetime):
        return value.date()
    return value


def _clamped_day(year: int, month: int, anchor_day: int) -> date:
    days_in_month = calendar.monthrange(year, month)[1]
    return date(year, month, min(anchor_day, days_in_month))


def billing_period_start(anchor_day: int, now: DateLike) -> date:
    """Get the first day of the billing period containing ``now``.

    If the anchor day has not yet been reached this month the period
    began in the previous month. Anchors past a month's end are clamped
    to its last day (anchor 31 in February gives Feb 28/29).

    Args:
        anchor_day: Day of month on which billing periods start (1-31)
        now: Reference moment

    Returns:
        Start date of the current billing period
    """
    today = to_day(now)
    if today.day < anchor_day:
        if today.month == 1:
            return _clamped_day(today.year - 1, 12, anchor_day)
        return _clamped_day(today.year, today.month - 1, anchor_day)
    return _clamped_day(today.year, today.month, anchor_day)


def billing_period_end(anchor_day: int, now: DateLike) -> date:
    """Get the last day of the billing period containing ``now``.

    This is the day before the next period starts, found by stepping 32
    days past the current start.
    """
    start = billing_period_start(anchor_day, now)
    next_start = billing_period_start(anchor_day, start + timedelta(days=32))
    return next_start - timedelta(days=1)


def month_start(now: DateLike) -> date:
    """Get the first day of the calendar month containing ``now``."""
    return to_day(now).replace(day=1)


def is_work_day(day: DateLike) -> bool:
    """Monday through Friday, holidays not considered."""
    return to_day(day).weekday() < 5


def work_week_start(now: DateLike) -> date:
    """Get the Monday on or before ``now``.

    Saturday and Sunday belong to the work week that just ended.
    """
    today = to_day(now)
    return today - timedelta(days=today.weekday())


def work_week_end(now: DateLike) -> date:
    """Get the Friday of the work week containing ``now``."""
    return work_week_start(now) + timedelta(days=4)


def current_work_day(now: DateLike) -> date:
    """Get ``now`` if it is a work day, else the most recent prior work day."""
    day = to_day(now)
    while not is_work_day(day):
        day -= timedelta(days=1)
    return day


def count_work_days(start: DateLike, end: DateLike) -> int:
    """Count work days between two dates, both ends inclusive.

    Returns 0 when ``end`` is before ``start``.
    """
    first = to_day(start)
    last = to_day(end)
    if last < first:
        return 0

    total_days = (last - first).days + 1
    full_weeks, extra_days = divmod(total_days, 7)
    count = full_weeks * 5
    weekday = first.weekday()
    for offset in range(extra_days):
        if (weekday + offset) % 7 < 5:
            count += 1
    return count


def count_work_days_remaining_in_week(now: DateLike) -> int:
    """Count work days left this week, including today if it is a work day."""
    return count_work_days(current_work_day(now), work_week_end(now))


def count_work_weeks_remaining(
    period_start: DateLike,
    period_end: DateLike,
    now: DateLike
) -> int:
    """Count work weeks left in a billing period.

    Weeks are identified by their Monday. Counting begins at the later of
    this week's Monday and the period start; a week counts once if its
    Friday falls on or after that point and its Monday is on or before
    the period end.

    Args:
        period_start: First day of the billing period
        period_end: Last day of the billing period
        now: Reference moment

    Returns:
        Number of work weeks remaining, never negative
    """
    start = to_day(period_start)
    end = to_day(period_end)
    effective_start = max(work_week_start(now), start)
    if end < effective_start:
        return 0

    first_monday = work_week_start(effective_start)
    if first_monday + timedelta(days=4) < effective_start:
        first_monday += timedelta(days=7)
    if first_monday > end:
        return 0
    return (end - first_monday).days // 7 + 1
