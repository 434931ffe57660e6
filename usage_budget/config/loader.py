"""
Configuration management and loading.

Reads default settings and the storage location from a YAML file.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

import yaml

from usage_budget.storage.db import DEFAULT_DB_PATH
from usage_budget.storage.models import Settings


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""
    settings: Settings = field(default_factory=Settings)
    db_path: str = DEFAULT_DB_PATH


def load_app_config(path: str) -> AppConfig:
    """Load and validate application configuration from YAML file.

    Strict validation ensures a typo in a key is reported instead of
    silently falling back to a default.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated AppConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    if not raw_config:
        raise ValueError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a dictionary")

    allowed_top_keys = {'settings', 'storage'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    settings = _parse_settings(raw_config.get('settings') or {})
    db_path = _parse_storage(raw_config.get('storage') or {})

    return AppConfig(settings=settings, db_path=db_path)


def _parse_settings(data: Dict) -> Settings:
    """Parse and validate the settings section.

    Raises:
        ValueError: If settings are invalid
    """
    if not isinstance(data, dict):
        raise ValueError("'settings' must be a dictionary")

    allowed_keys = {'billing_period_day', 'monthly_cost_limit'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown settings keys: {unknown_keys}")

    day = data.get('billing_period_day', 1)
    if isinstance(day, bool) or not isinstance(day, int):
        raise ValueError("'billing_period_day' must be an integer")
    if not 1 <= day <= 31:
        raise ValueError("'billing_period_day' must be between 1 and 31")

    limit = data.get('monthly_cost_limit')
    if limit is not None:
        if isinstance(limit, bool) or not isinstance(limit, (int, float)):
            raise ValueError("'monthly_cost_limit' must be a number")
        if limit < 0:
            raise ValueError("'monthly_cost_limit' must be >= 0")
        limit = float(limit)

    return Settings(billing_period_day=day, monthly_cost_limit=limit)


def _parse_storage(data: Dict) -> str:
    if not isinstance(data, dict):
        raise ValueError("'storage' must be a dictionary")

    unknown_keys = set(data.keys()) - {'db_path'}
    if unknown_keys:
        raise ValueError(f"Unknown storage keys: {unknown_keys}")

    db_path = data.get('db_path', DEFAULT_DB_PATH)
    if not isinstance(db_path, str) or not db_path.strip():
        raise ValueError("'db_path' must be a non-empty string")
    return db_path
