"""
Workbook reader for the weekly media mix export.

The export is a spreadsheet with an "Investments" sheet and a
"Contributions" sheet, one row per week and one column per channel.
"""

from pathlib import Path

import pandas as pd

from services.errors import SourceFormatError

INVESTMENTS_SHEET = "Investments"
CONTRIBUTIONS_SHEET = "Contributions"


def frame_to_rows(frame: pd.DataFrame) -> list[dict]:
    """Convert a sheet to a list of dict rows, dropping fully empty rows."""
    frame = frame.dropna(how="all")
    frame = frame.astype(object).where(pd.notna(frame), None)
    return frame.to_dict(orient="records")


def read_workbook(filepath: Path) -> tuple[list[dict], list[dict]]:
    """
    Read the investments and contributions sheets from a workbook.

    Returns:
        (investment_rows, contribution_rows) as raw dict rows
    """
    sheets = pd.read_excel(filepath, sheet_name=None)

    missing = [s for s in (INVESTMENTS_SHEET, CONTRIBUTIONS_SHEET) if s not in sheets]
    if missing:
        raise SourceFormatError(
            f'Required sheets "{INVESTMENTS_SHEET}" and "{CONTRIBUTIONS_SHEET}" not found. '
            f"Available sheets: {', '.join(sheets)}"
        )

    return frame_to_rows(sheets[INVESTMENTS_SHEET]), frame_to_rows(sheets[CONTRIBUTIONS_SHEET])
