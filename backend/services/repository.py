"""
In-memory store for the loaded weekly records.

The repository is owned by its caller (the API keeps one on app.state,
tests build their own) and is passed explicitly to every query, so there
is no module-level cache to reset between runs.
"""

from datetime import date
from pathlib import Path
from typing import Optional

from services.errors import ChannelMismatchError, MissingDataError
from services.records import (
    RESERVED_COLUMNS,
    WeeklyRecord,
    column_names,
    detect_channels,
    parse_rows,
)
from services.workbook import read_workbook


class RecordRepository:
    """Holds the parsed investments and contributions tables."""

    def __init__(self):
        self._investments: list[WeeklyRecord] = []
        self._contributions: list[WeeklyRecord] = []
        self._channels: list[str] = []
        self.source: Optional[str] = None

    def load(self, investment_rows: list[dict], contribution_rows: list[dict], source: str = "memory") -> None:
        """
        Replace the repository contents with two raw tables.

        Raises ChannelMismatchError if the tables have no channel in common.
        """
        channels = detect_channels(investment_rows, contribution_rows)
        if not channels:
            raise ChannelMismatchError(
                "Investments and contributions tables have no channel columns in common"
            )

        dropped = [
            col for col in column_names(investment_rows) + column_names(contribution_rows)
            if col not in RESERVED_COLUMNS and col not in channels
        ]
        if dropped:
            print(f"[Records] Ignoring columns not present in both tables: {', '.join(sorted(set(dropped)))}")

        self._investments = parse_rows(investment_rows, channels)
        self._contributions = parse_rows(contribution_rows, channels, with_outcome=True)
        self._channels = channels
        self.source = source

        print(
            f"[Records] Loaded {len(self._investments)} investment weeks and "
            f"{len(self._contributions)} contribution weeks for {len(channels)} channels from {source}"
        )

    def load_workbook(self, filepath: Path) -> None:
        """Load both tables from a workbook on disk."""
        investment_rows, contribution_rows = read_workbook(filepath)
        self.load(investment_rows, contribution_rows, source=str(filepath))

    def clear(self) -> None:
        """Drop all loaded records."""
        self._investments = []
        self._contributions = []
        self._channels = []
        self.source = None
        print("[Records] Repository cleared")

    @property
    def is_loaded(self) -> bool:
        return bool(self._channels)

    def _require_loaded(self) -> None:
        if not self.is_loaded:
            raise MissingDataError("No records loaded. Load a workbook or call load() first.")

    @property
    def channels(self) -> list[str]:
        self._require_loaded()
        return list(self._channels)

    @property
    def investments(self) -> list[WeeklyRecord]:
        self._require_loaded()
        return self._investments

    @property
    def contributions(self) -> list[WeeklyRecord]:
        self._require_loaded()
        return self._contributions

    def available_dates(self) -> list[date]:
        """All distinct dates across both tables, sorted."""
        self._require_loaded()
        return sorted({r.date for r in self._investments} | {r.date for r in self._contributions})

    def available_years(self) -> list[int]:
        """All calendar years present in either table, sorted."""
        return sorted({d.year for d in self.available_dates()})

    def date_range(self) -> Optional[tuple[date, date]]:
        """Earliest and latest dates, or None when no rows have dates."""
        dates = self.available_dates()
        if not dates:
            return None
        return dates[0], dates[-1]
