"""
Repository pattern for persisted settings and records.

Maps typed settings and the record snapshot onto a SettingsStore.
"""

import json
import logging
from datetime import datetime
from typing import List, Optional

from .db import DEFAULT_DB_PATH
from .models import Settings, UsageRecord
from .settings_store import SettingsStore, SqliteSettingsStore

log = logging.getLogger(__name__)


BILLING_PERIOD_DAY_KEY = "usage-budget.billing-period-day"
MONTHLY_COST_LIMIT_KEY = "usage-budget.monthly-cost-limit"
RECORDS_KEY = "usage-budget.records"


class SettingsRepository:
    """Typed access to the values kept in a SettingsStore.

    Reads never fail: missing or corrupt values fall back to the
    configured defaults.
    """

    def __init__(self, store: SettingsStore, defaults: Optional[Settings] = None):
        """Initialize the repository.

        Args:
            store: Backend holding the raw string values
            defaults: Values reported when nothing valid is stored
        """
        self.store = store
        self.defaults = defaults or Settings()

    def get_billing_period_day(self) -> int:
        stored = self.store.get(BILLING_PERIOD_DAY_KEY)
        if stored is None:
            return self.defaults.billing_period_day
        try:
            day = int(stored)
        except ValueError:
            log.warning("Ignoring invalid stored billing period day %r", stored)
            return self.defaults.billing_period_day
        if not 1 <= day <= 31:
            log.warning("Ignoring out-of-range stored billing period day %d", day)
            return self.defaults.billing_period_day
        return day

    def set_billing_period_day(self, day: int) -> None:
        """Persist the billing anchor day.

        Raises:
            ValueError: If day is outside 1-31
        """
        if not 1 <= day <= 31:
            raise ValueError("billing period day must be between 1 and 31")
        self.store.set(BILLING_PERIOD_DAY_KEY, str(day))
        log.info("Billing period day set to %d", day)

    def get_monthly_cost_limit(self) -> Optional[float]:
        stored = self.store.get(MONTHLY_COST_LIMIT_KEY)
        if stored is None or stored == "":
            return self.defaults.monthly_cost_limit
        try:
            limit = float(stored)
        except ValueError:
            log.warning("Ignoring invalid stored monthly cost limit %r", stored)
            return self.defaults.monthly_cost_limit
        if limit < 0:
            log.warning("Ignoring negative stored monthly cost limit %s", stored)
            return self.defaults.monthly_cost_limit
        return limit

    def set_monthly_cost_limit(self, limit: Optional[float]) -> None:
        """Persist the monthly cap. None or 0 clears it.

        Raises:
            ValueError: If limit is negative
        """
        if limit is None or limit == 0:
            self.store.delete(MONTHLY_COST_LIMIT_KEY)
            log.info("Monthly cost limit cleared")
            return
        if limit < 0:
            raise ValueError("monthly cost limit cannot be negative")
        self.store.set(MONTHLY_COST_LIMIT_KEY, repr(float(limit)))
        log.info("Monthly cost limit set to %.2f", limit)

    def get_settings(self) -> Settings:
        return Settings(
            billing_period_day=self.get_billing_period_day(),
            monthly_cost_limit=self.get_monthly_cost_limit()
        )

    def save_records(self, records: List[UsageRecord]) -> None:
        """Replace the stored snapshot with ``records``."""
        payload = [_record_to_dict(record) for record in records]
        self.store.set(RECORDS_KEY, json.dumps(payload))
        log.info("Stored snapshot of %d usage records", len(records))

    def load_records(self) -> List[UsageRecord]:
        """Load the stored snapshot, or an empty list if there is none."""
        stored = self.store.get(RECORDS_KEY)
        if not stored:
            return []
        try:
            return [_record_from_dict(item) for item in json.loads(stored)]
        except (ValueError, KeyError, TypeError) as e:
            log.warning("Discarding unreadable record snapshot: %s", e)
            return []

    def clear_records(self) -> None:
        self.store.delete(RECORDS_KEY)


def _record_to_dict(record: UsageRecord) -> dict:
    return {
        "date": record.date.isoformat(),
        "kind": record.kind,
        "model": record.model,
        "max_mode": record.max_mode,
        "input_with_cache_write": record.input_with_cache_write,
        "input_without_cache_write": record.input_without_cache_write,
        "cache_read": record.cache_read,
        "output_tokens": record.output_tokens,
        "total_tokens": record.total_tokens,
        "cost": record.cost,
    }


def _record_from_dict(data: dict) -> UsageRecord:
    return UsageRecord(
        date=datetime.fromisoformat(data["date"]),
        kind=data["kind"],
        model=data["model"],
        max_mode=data["max_mode"],
        input_with_cache_write=data["input_with_cache_write"],
        input_without_cache_write=data["input_without_cache_write"],
        cache_read=data["cache_read"],
        output_tokens=data["output_tokens"],
        total_tokens=data["total_tokens"],
        cost=data["cost"],
    )


def get_repository(
    db_path: str = DEFAULT_DB_PATH,
    defaults: Optional[Settings] = None
) -> SettingsRepository:
    """Get a repository backed by the SQLite database at ``db_path``.

    Args:
        db_path: Path to SQLite database file
        defaults: Settings used when nothing is stored

    Returns:
        An instance of SettingsRepository
    """
    return SettingsRepository(SqliteSettingsStore(db_path), defaults)
