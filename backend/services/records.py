"""
Weekly record model and date-window filtering.

A weekly record is one row of either the investments table (spend per
channel) or the contributions table (attributed outcome per channel, plus
the reserved "base" and "sales" columns).
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional

import numpy as np
import pandas as pd

# Columns that carry a date rather than a channel value
DATE_COLUMNS = ["Date", "date", "Dates"]

# Reserved contribution columns, mapped to their canonical key
BASE_COLUMNS = ["Base1", "base"]
SALES_COLUMNS = ["Sales", "sales"]

RESERVED_COLUMNS = DATE_COLUMNS + BASE_COLUMNS + SALES_COLUMNS

# Excel serial day 0 (accounts for the 1900 leap year bug)
EXCEL_EPOCH = date(1899, 12, 30)


@dataclass
class WeeklyRecord:
    """One week of values keyed by channel name."""
    date: date
    values: dict[str, float] = field(default_factory=dict)

    def value(self, key: str) -> float:
        return self.values.get(key, 0.0)

    @property
    def base(self) -> float:
        return self.value("base")

    @property
    def sales(self) -> float:
        return self.value("sales")


def to_day(value: Any) -> Optional[date]:
    """
    Normalize a date-like value to calendar-day granularity.

    Numbers are read as Excel serial days. Everything else (date/datetime
    objects, pandas Timestamps, ISO or locale strings such as "01/08/2024"
    or "Jan 8, 2024") goes through pd.to_datetime. Time of day is dropped.
    Returns None for anything that cannot be read as a date.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        if math.isnan(value) or value <= 0:
            return None
        return EXCEL_EPOCH + timedelta(days=int(value))
    if isinstance(value, datetime) and value is not pd.NaT:
        return value.date()
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def to_number(value: Any) -> float:
    """Coerce a cell to float. Missing or non-numeric cells become 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _first_present(row: dict, columns: list[str]) -> Any:
    for column in columns:
        if row.get(column) not in (None, ""):
            return row[column]
    return None


def column_names(rows: Iterable[dict]) -> list[str]:
    """All column names across rows, in order of first appearance."""
    seen = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


def detect_channels(investment_rows: list[dict], contribution_rows: list[dict]) -> list[str]:
    """
    Get the canonical channel list for a pair of tables.

    Channels are the investment columns that are not reserved and also
    appear in the contributions table, kept in investment column order.
    """
    contribution_columns = set(column_names(contribution_rows))
    return [
        col for col in column_names(investment_rows)
        if col not in RESERVED_COLUMNS and col in contribution_columns
    ]


def parse_rows(rows: Iterable[dict], channels: list[str], with_outcome: bool = False) -> list[WeeklyRecord]:
    """
    Convert raw table rows into weekly records.

    Rows without a readable date are skipped. When with_outcome is set the
    reserved base/sales columns are carried over as "base" and "sales".
    """
    records = []
    skipped = 0
    for row in rows:
        day = to_day(_first_present(row, DATE_COLUMNS))
        if day is None:
            skipped += 1
            continue

        values = {channel: to_number(row.get(channel)) for channel in channels}
        if with_outcome:
            values["base"] = to_number(_first_present(row, BASE_COLUMNS))
            values["sales"] = to_number(_first_present(row, SALES_COLUMNS))

        records.append(WeeklyRecord(date=day, values=values))

    if skipped:
        print(f"[Records] Skipped {skipped} rows without a readable date")
    return records


def filter_by_window(records: list[WeeklyRecord], start: Any, end: Any) -> list[WeeklyRecord]:
    """
    Keep the records whose date falls within [start, end], inclusive.

    Both bounds and record dates are compared at calendar-day granularity so
    a boundary week is never dropped because of a time-of-day component.
    Original order is preserved.
    """
    start_day = to_day(start)
    end_day = to_day(end)
    if start_day is None or end_day is None:
        raise ValueError(f"Invalid date window: {start!r} to {end!r}")

    return [r for r in records if start_day <= to_day(r.date) <= end_day]


def filter_by_year(records: list[WeeklyRecord], year: int) -> list[WeeklyRecord]:
    """Keep the records dated within a calendar year."""
    return filter_by_window(records, date(year, 1, 1), date(year, 12, 31))
