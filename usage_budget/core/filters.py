"""
Record filtering.

Stateless filters over a record collection, applied in a fixed order:
date range, then model, then usage type. Each is a no-op when unset.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional

from usage_budget.core.periods import DateLike, billing_period_start, to_day
from usage_budget.storage.models import UsageRecord


ERRORED_NO_CHARGE = "Errored, No Charge"
ABORTED_NOT_CHARGED = "Aborted, Not Charged"
NO_CHARGE_KINDS = (ERRORED_NO_CHARGE, ABORTED_NOT_CHARGED)

ON_DEMAND = "On-Demand"


@dataclass(frozen=True)
class Filters:
    """User-selected view filters. None means unconstrained."""
    start: Optional[date] = None
    end: Optional[date] = None
    model: Optional[str] = None
    usage_type: Optional[str] = None


def filter_by_date_range(
    records: Iterable[UsageRecord],
    start: Optional[DateLike],
    end: Optional[DateLike]
) -> List[UsageRecord]:
    """Keep records whose calendar day lies within [start, end]."""
    records = list(records)
    if start is None and end is None:
        return records

    first = to_day(start) if start is not None else None
    last = to_day(end) if end is not None else None

    result = []
    for record in records:
        day = record.date.date()
        if first is not None and day < first:
            continue
        if last is not None and day > last:
            continue
        result.append(record)
    return result


def filter_by_model(records: Iterable[UsageRecord], model: Optional[str]) -> List[UsageRecord]:
    if not model:
        return list(records)
    return [r for r in records if r.model == model]


def filter_by_usage_type(records: Iterable[UsageRecord], usage_type: Optional[str]) -> List[UsageRecord]:
    if not usage_type:
        return list(records)
    return [r for r in records if r.kind == usage_type]


def exclude_no_charge(records: Iterable[UsageRecord]) -> List[UsageRecord]:
    """Drop errored and aborted attempts that were never billed."""
    return [r for r in records if r.kind not in NO_CHARGE_KINDS]


def apply_filters(records: Iterable[UsageRecord], filters: Filters) -> List[UsageRecord]:
    """Apply view filters, then hide no-charge records.

    No-charge records are only kept when the usage type filter selects
    one of those kinds explicitly.
    """
    filtered = filter_by_date_range(records, filters.start, filters.end)
    filtered = filter_by_model(filtered, filters.model)
    filtered = filter_by_usage_type(filtered, filters.usage_type)
    if filters.usage_type not in NO_CHARGE_KINDS:
        filtered = exclude_no_charge(filtered)
    return filtered


def unique_models(records: Iterable[UsageRecord]) -> List[str]:
    return sorted({r.model for r in records})


def unique_usage_types(records: Iterable[UsageRecord]) -> List[str]:
    return sorted({r.kind for r in records})


def default_filters(billing_period_day: Optional[int], now: DateLike) -> Filters:
    """Initial view: current billing period start through ``now``."""
    return Filters(
        start=billing_period_start(billing_period_day or 1, now),
        end=to_day(now)
    )
