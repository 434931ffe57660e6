"""
Shared test fixtures.
"""

from datetime import datetime

import pytest

from usage_budget.storage.models import UsageRecord


HEADER = (
    "Date,Kind,Model,Max Mode,Input (w/ Cache Write),Input (w/o Cache Write),"
    "Cache Read,Output Tokens,Total Tokens,Cost"
)


def make_record(when: datetime, kind: str = "Included", cost: float = 1.0, model: str = "auto") -> UsageRecord:
    """Create a test usage record."""
    return UsageRecord(
        date=when,
        kind=kind,
        model=model,
        max_mode="No",
        input_with_cache_write=100,
        input_without_cache_write=50,
        cache_read=1000,
        output_tokens=25,
        total_tokens=1175,
        cost=cost
    )


@pytest.fixture
def december_records():
    """Records around the 2025-12-08 work week (Dec 10 is a Wednesday)."""
    return [
        make_record(datetime(2025, 11, 30, 9, 0), "On-Demand", 50.0),
        make_record(datetime(2025, 12, 2, 10, 0), "Included", 10.0, "claude-4-sonnet"),
        make_record(datetime(2025, 12, 9, 14, 30), "On-Demand", 15.0, "gpt-5"),
        make_record(datetime(2025, 12, 10, 8, 15), "Included", 5.0, "claude-4-sonnet"),
        make_record(datetime(2025, 12, 10, 9, 45), "Errored, No Charge", 5.0, "gpt-5"),
    ]
