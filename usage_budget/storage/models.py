"""
Data models for storage layer.

Defines usage records and user settings.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class UsageRecord:
    """Immutable record of a single usage event from a cost export.

    Created once per parsed CSV row and never modified afterwards.
    """
    date: datetime
    kind: str
    model: str
    max_mode: str
    input_with_cache_write: float
    input_without_cache_write: float
    cache_read: float
    output_tokens: float
    total_tokens: float
    cost: float

    def __post_init__(self):
        """Validate cost is not negative."""
        if self.cost < 0:
            raise ValueError(f"cost cannot be negative: {self.cost}")


@dataclass(frozen=True)
class Settings:
    """User-configured budget parameters."""
    billing_period_day: int = 1
    monthly_cost_limit: Optional[float] = None

    def __post_init__(self):
        """Validate billing day range and limit sign."""
        if not 1 <= self.billing_period_day <= 31:
            raise ValueError("billing_period_day must be between 1 and 31")
        if self.monthly_cost_limit is not None and self.monthly_cost_limit < 0:
            raise ValueError("monthly_cost_limit cannot be negative")
