"""
Day-bucketed cost series for charts and exports.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List

from .budget import calculate_on_demand_cost, calculate_total_cost
from .filters import Filters, apply_filters, exclude_no_charge, filter_by_date_range, filter_by_model
from usage_budget.storage.models import UsageRecord


@dataclass(frozen=True)
class DailyCostPoint:
    """Cost for one calendar day plus the running total up to it."""
    day: date
    daily_cost: float
    cumulative_cost: float


@dataclass(frozen=True)
class CostSummary:
    """Headline totals for a filtered view."""
    total_cost: float
    on_demand_cost: float


def build_daily_series(records: Iterable[UsageRecord]) -> List[DailyCostPoint]:
    """Group records by calendar day, sorted ascending.

    An empty result means there is no data for the current filters.
    """
    by_day: Dict[date, float] = {}
    for record in records:
        day = record.date.date()
        by_day[day] = by_day.get(day, 0.0) + record.cost

    series = []
    cumulative = 0.0
    for day in sorted(by_day):
        cumulative += by_day[day]
        series.append(DailyCostPoint(day=day, daily_cost=by_day[day], cumulative_cost=cumulative))
    return series


def build_chart_data(records: Iterable[UsageRecord], filters: Filters) -> List[DailyCostPoint]:
    return build_daily_series(apply_filters(records, filters))


def summarize_costs(records: Iterable[UsageRecord], filters: Filters) -> CostSummary:
    """Total cost of the filtered view and its on-demand share.

    The on-demand figure honours the date and model filters but always
    looks at on-demand usage, whatever usage type is selected.
    """
    records = list(records)
    scoped = filter_by_model(filter_by_date_range(records, filters.start, filters.end), filters.model)
    return CostSummary(
        total_cost=calculate_total_cost(apply_filters(records, filters)),
        on_demand_cost=calculate_on_demand_cost(exclude_no_charge(scoped))
    )
