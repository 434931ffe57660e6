"""
Budget metrics and cascading spending limits.

Usage is always measured against the unfiltered record set with
no-charge attempts removed. When a monthly limit is set, the remaining
monthly budget is spread over the remaining work weeks, and what is left
of that weekly allowance over the remaining work days.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from .filters import ON_DEMAND, exclude_no_charge, filter_by_date_range, filter_by_usage_type
from .periods import (
    DateLike,
    billing_period_end,
    billing_period_start,
    count_work_days_remaining_in_week,
    count_work_weeks_remaining,
    current_work_day,
    work_week_end,
    work_week_start,
)
from usage_budget.storage.models import UsageRecord

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetMetrics:
    """Usage and allowance for the current month, work week and work day."""
    monthly_usage: float
    monthly_limit: Optional[float]
    weekly_usage: float
    weekly_limit: Optional[float]
    daily_usage: float
    daily_limit: Optional[float]


def calculate_total_cost(records: Iterable[UsageRecord]) -> float:
    return sum((r.cost for r in records), 0.0)


def calculate_on_demand_cost(records: Iterable[UsageRecord]) -> float:
    return calculate_total_cost(filter_by_usage_type(records, ON_DEMAND))


def calculate_billing_period_usage(
    records: Iterable[UsageRecord],
    billing_period_day: int,
    now: DateLike
) -> float:
    """Billable spend inside the billing period containing ``now``."""
    period = filter_by_date_range(
        records,
        billing_period_start(billing_period_day, now),
        billing_period_end(billing_period_day, now)
    )
    return calculate_total_cost(exclude_no_charge(period))


def calculate_work_week_usage(records: Iterable[UsageRecord], now: DateLike) -> float:
    """Billable spend from Monday through Friday of the current work week."""
    week = filter_by_date_range(records, work_week_start(now), work_week_end(now))
    return calculate_total_cost(exclude_no_charge(week))


def calculate_work_day_usage(records: Iterable[UsageRecord], now: DateLike) -> float:
    """Billable spend on the current (or most recent) work day."""
    day = current_work_day(now)
    return calculate_total_cost(exclude_no_charge(filter_by_date_range(records, day, day)))


def calculate_weekly_limit(
    monthly_limit: float,
    billing_period_usage: float,
    weeks_remaining: int
) -> float:
    """Spread the remaining monthly budget evenly over the remaining weeks.

    Returns 0 when no weeks remain or the budget is already spent.
    """
    if weeks_remaining <= 0:
        return 0.0
    return max(0.0, (monthly_limit - billing_period_usage) / weeks_remaining)


def calculate_daily_limit(
    weekly_limit: float,
    work_week_usage: float,
    work_days_remaining: int
) -> float:
    """Spread the remaining weekly allowance evenly over the remaining work days."""
    if work_days_remaining <= 0:
        return 0.0
    return max(0.0, (weekly_limit - work_week_usage) / work_days_remaining)


def compute_budget_metrics(
    records: Iterable[UsageRecord],
    billing_period_day: Optional[int],
    monthly_limit: Optional[float],
    now: Optional[DateLike] = None
) -> BudgetMetrics:
    """Compute usage and cascading limits for the current periods.

    Args:
        records: Full, unfiltered record collection
        billing_period_day: Billing anchor day; None means the 1st
        monthly_limit: Monthly spending cap; None disables limits
        now: Reference moment, defaults to the current time

    Returns:
        BudgetMetrics. weekly_limit and daily_limit are None exactly when
        monthly_limit is None.
    """
    if now is None:
        now = datetime.now()
    anchor_day = billing_period_day or 1
    records = list(records)

    monthly_usage = calculate_billing_period_usage(records, anchor_day, now)
    weekly_usage = calculate_work_week_usage(records, now)
    daily_usage = calculate_work_day_usage(records, now)

    weekly_limit = None
    daily_limit = None
    if monthly_limit is not None:
        period_start = billing_period_start(anchor_day, now)
        period_end = billing_period_end(anchor_day, now)
        weeks_remaining = count_work_weeks_remaining(period_start, period_end, now)
        weekly_limit = calculate_weekly_limit(monthly_limit, monthly_usage, weeks_remaining)

        days_remaining = count_work_days_remaining_in_week(now)
        daily_limit = calculate_daily_limit(weekly_limit, weekly_usage, days_remaining)

        log.debug(
            "Billing period %s..%s: %d weeks, %d days remaining",
            period_start, period_end, weeks_remaining, days_remaining
        )

    return BudgetMetrics(
        monthly_usage=monthly_usage,
        monthly_limit=monthly_limit,
        weekly_usage=weekly_usage,
        weekly_limit=weekly_limit,
        daily_usage=daily_usage,
        daily_limit=daily_limit
    )
