"""
Tests for budget metrics and cascading limits.
"""

from datetime import date, datetime

import pytest

from usage_budget.core.budget import (
    BudgetMetrics,
    calculate_billing_period_usage,
    calculate_daily_limit,
    calculate_on_demand_cost,
    calculate_total_cost,
    calculate_weekly_limit,
    calculate_work_day_usage,
    calculate_work_week_usage,
    compute_budget_metrics,
)

from .conftest import make_record

NOW = datetime(2025, 12, 10, 12, 0)  # Wednesday


class TestLimitCalculations:
    """Test the weekly and daily limit formulas."""

    def test_weekly_limit(self):
        """Test remaining budget is spread over remaining weeks."""
        assert calculate_weekly_limit(100, 40, 4) == 15

    def test_weekly_limit_no_weeks(self):
        """Test zero weeks remaining yields zero."""
        assert calculate_weekly_limit(100, 40, 0) == 0

    def test_weekly_limit_overspent(self):
        """Test overspending never yields a negative limit."""
        assert calculate_weekly_limit(100, 140, 4) == 0

    def test_daily_limit(self):
        """Test remaining weekly allowance is spread over remaining days."""
        assert calculate_daily_limit(50, 20, 3) == 10

    def test_daily_limit_edge_cases(self):
        """Test zero days and overspending."""
        assert calculate_daily_limit(50, 20, 0) == 0
        assert calculate_daily_limit(50, 80, 3) == 0


class TestUsage:
    """Test usage sums per period."""

    def test_total_and_on_demand_cost(self, december_records):
        """Test plain sums."""
        assert calculate_total_cost(december_records) == 85.0
        assert calculate_on_demand_cost(december_records) == 65.0

    def test_total_cost_empty(self):
        """Test an empty collection sums to zero."""
        assert calculate_total_cost([]) == 0

    def test_billing_period_usage(self, december_records):
        """Test only records in the period count, without no-charge kinds."""
        assert calculate_billing_period_usage(december_records, 1, NOW) == 30.0

    def test_billing_period_usage_custom_anchor(self, december_records):
        """Test a mid-month anchor includes the previous month's tail."""
        assert calculate_billing_period_usage(december_records, 15, NOW) == 80.0

    def test_work_week_usage(self, december_records):
        """Test Monday-Friday of the current week."""
        assert calculate_work_week_usage(december_records, NOW) == 20.0

    def test_work_day_usage(self, december_records):
        """Test today's billable spend."""
        assert calculate_work_day_usage(december_records, NOW) == 5.0

    def test_work_day_usage_on_weekend(self):
        """Test the weekend reports Friday's spend."""
        records = [
            make_record(datetime(2025, 12, 12, 10, 0), cost=7.0),
            make_record(datetime(2025, 12, 13, 10, 0), cost=3.0),
        ]
        assert calculate_work_day_usage(records, date(2025, 12, 13)) == 7.0

    def test_spec_example_excludes_no_charge(self):
        """Test errored attempts are left out of the monthly total."""
        records = [
            make_record(datetime(2025, 12, 3, 9, 0), "Included", 10.0),
            make_record(datetime(2025, 12, 3, 9, 0), "Errored, No Charge", 5.0),
            make_record(datetime(2025, 12, 3, 9, 0), "On-Demand", 15.0),
        ]
        assert calculate_billing_period_usage(records, 1, NOW) == 25.0


class TestComputeBudgetMetrics:
    """Test the full cascade."""

    def test_without_monthly_limit(self, december_records):
        """Test only usage is reported when no limit is set."""
        metrics = compute_budget_metrics(december_records, 1, None, now=NOW)

        assert metrics == BudgetMetrics(
            monthly_usage=30.0,
            monthly_limit=None,
            weekly_usage=20.0,
            weekly_limit=None,
            daily_usage=5.0,
            daily_limit=None
        )

    def test_cascade(self, december_records):
        """Test weekly derives from remaining monthly, daily from remaining weekly."""
        metrics = compute_budget_metrics(december_records, 1, 200.0, now=NOW)

        # 4 work weeks remain (8, 15, 22, 29 Dec); 3 work days remain this week
        assert metrics.monthly_limit == 200.0
        assert metrics.weekly_limit == pytest.approx(42.5)
        assert metrics.daily_limit == pytest.approx(7.5)

    def test_cascade_overspent_week(self, december_records):
        """Test an exhausted weekly allowance gives a zero daily limit."""
        metrics = compute_budget_metrics(december_records, 1, 100.0, now=NOW)

        assert metrics.weekly_limit == pytest.approx(17.5)
        assert metrics.daily_limit == 0

    def test_missing_anchor_uses_calendar_month(self, december_records):
        """Test None behaves like anchor day 1."""
        assert compute_budget_metrics(december_records, None, 200.0, now=NOW) == \
            compute_budget_metrics(december_records, 1, 200.0, now=NOW)

    def test_idempotent(self, december_records):
        """Test repeated calls return identical results."""
        first = compute_budget_metrics(december_records, 15, 300.0, now=NOW)
        second = compute_budget_metrics(december_records, 15, 300.0, now=NOW)
        assert first == second

    def test_accepts_generator(self, december_records):
        """Test records may be any iterable."""
        metrics = compute_budget_metrics((r for r in december_records), 1, None, now=NOW)
        assert metrics.monthly_usage == 30.0

    def test_defaults_now_to_current_time(self):
        """Test omitting now uses the current time."""
        records = [make_record(datetime.now(), cost=4.0)]
        metrics = compute_budget_metrics(records, 1, None)
        assert metrics.monthly_usage == 4.0
