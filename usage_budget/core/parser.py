"""
CSV parsing for usage-cost exports.

Turns raw export text into validated UsageRecord values. Schema problems
and bad dates abort the whole parse; bad numeric cells fall back to zero.
"""

import csv
import logging
import re
from datetime import datetime
from typing import Dict, List

from dateutil import parser as dup

from usage_budget.storage.models import UsageRecord

log = logging.getLogger(__name__)


REQUIRED_COLUMNS = [
    "Date",
    "Kind",
    "Model",
    "Max Mode",
    "Input (w/ Cache Write)",
    "Input (w/o Cache Write)",
    "Cache Read",
    "Output Tokens",
    "Total Tokens",
    "Cost",
]

_NULL_TOKENS = {"", "null", "undefined"}
_NUMBER_PREFIX = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


class UsageParseError(ValueError):
    """Base class for errors raised while parsing a usage export."""


class SchemaError(UsageParseError):
    """The export does not have the expected overall shape."""


class EmptyOrHeaderOnlyError(SchemaError):
    """Raised when the export has no data rows."""

    def __init__(self):
        super().__init__("CSV file must contain at least a header row and one data row")


class MissingColumnError(SchemaError):
    """Raised when a required column is absent from the header."""

    def __init__(self, column: str):
        super().__init__(f"Missing required column: {column}")
        self.column = column


class RowParseError(UsageParseError):
    """Raised when a data row cannot be turned into a record."""

    def __init__(self, line_number: int, cause: str):
        super().__init__(f"Error parsing line {line_number}: {cause}")
        self.line_number = line_number
        self.cause = cause


def parse_usage_csv(text: str) -> List[UsageRecord]:
    """Parse usage export text into records, preserving row order.

    Args:
        text: Full CSV content including the header row

    Returns:
        One UsageRecord per non-blank data line

    Raises:
        EmptyOrHeaderOnlyError: If there is no data line
        MissingColumnError: If a required column is missing from the header
        RowParseError: If a row is truncated or has an invalid date or cost
    """
    lines = text.strip().split("\n")
    if len(lines) < 2:
        raise EmptyOrHeaderOnlyError()

    header_map = _build_header_map(split_csv_line(lines[0]))

    records = []
    for index, raw_line in enumerate(lines[1:], start=2):
        line = raw_line.strip()
        if not line:
            continue
        try:
            records.append(_parse_record(split_csv_line(line), header_map))
        except ValueError as e:
            raise RowParseError(index, str(e)) from e

    log.debug("Parsed %d usage records from %d lines", len(records), len(lines))
    return records


def split_csv_line(line: str) -> List[str]:
    """Split one CSV line into trimmed fields.

    Handles quoted fields, commas inside quotes and doubled quotes.
    """
    values = next(csv.reader([line.strip()], skipinitialspace=True), [""])
    return [value.strip() for value in values]


def _build_header_map(headers: List[str]) -> Dict[str, int]:
    """Map lowercased required column names to their index."""
    positions = {}
    for index, header in enumerate(headers):
        positions.setdefault(header.strip().lower(), index)

    header_map = {}
    for column in REQUIRED_COLUMNS:
        key = column.lower()
        if key not in positions:
            raise MissingColumnError(column)
        header_map[key] = positions[key]
    return header_map


def _parse_record(values: List[str], header_map: Dict[str, int]) -> UsageRecord:
    def get_value(column: str) -> str:
        index = header_map[column.lower()]
        if index >= len(values):
            raise ValueError(f"Missing value for column: {column}")
        value = values[index].strip()
        if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
            value = value[1:-1]
        return value

    return UsageRecord(
        date=parse_timestamp(get_value("Date")),
        kind=get_value("Kind"),
        model=get_value("Model"),
        max_mode=get_value("Max Mode"),
        input_with_cache_write=parse_number(get_value("Input (w/ Cache Write)")),
        input_without_cache_write=parse_number(get_value("Input (w/o Cache Write)")),
        cache_read=parse_number(get_value("Cache Read")),
        output_tokens=parse_number(get_value("Output Tokens")),
        total_tokens=parse_number(get_value("Total Tokens")),
        cost=parse_number(get_value("Cost")),
    )


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into naive local wall-clock time.

    Partial values such as a bare time are rejected rather than completed
    from the current date.

    Raises:
        ValueError: If the text is not a valid timestamp
    """
    if not value:
        raise ValueError("Invalid date format: empty value")
    try:
        parsed = dup.isoparse(value)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Invalid date format: {value}") from e

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def parse_number(value: str) -> float:
    """Parse a numeric cell, falling back to 0 for missing or bad input."""
    cleaned = value.strip().replace('"', "")
    if cleaned in _NULL_TOKENS:
        return 0.0

    match = _NUMBER_PREFIX.match(cleaned)
    if match is None:
        log.debug("Coercing non-numeric value %r to 0", value)
        return 0.0
    return float(match.group(0))
