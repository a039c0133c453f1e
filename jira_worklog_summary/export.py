"""Excel export of the ordered worklog summary."""

import os
from datetime import datetime
from typing import List

import pandas as pd

from .formatter import ReportRow

SUMMARY_COLS = ["User", "Seconds", "Hours"]
DETAIL_COLS = ["User", "Issue", "Seconds", "Hours"]


def default_out_name(prefix: str = "jira-worklog-summary") -> str:
    """Generate a default Excel output filename ('<prefix>-YYYY-MM-DD-HHMM.xlsx')."""
    ts = datetime.now().strftime("%Y-%m-%d-%H%M")
    return f"{prefix}-{ts}.xlsx"


def build_frames(rows: List[ReportRow]):
    """Return (summary, details) DataFrames for the report rows."""
    summary = pd.DataFrame(
        [{"User": r.label, "Seconds": r.total_seconds, "Hours": round(r.total_seconds / 3600.0, 2)} for r in rows],
        columns=SUMMARY_COLS,
    )
    details = pd.DataFrame(
        [
            {"User": r.label, "Issue": key, "Seconds": seconds, "Hours": round(seconds / 3600.0, 2)}
            for r in rows
            for key, seconds in r.details
        ],
        columns=DETAIL_COLS,
    )
    return summary, details


def write_excel(rows: List[ReportRow], out_path: str) -> str:
    """Write the report to an .xlsx file and return the path actually used."""
    if not out_path.lower().endswith(".xlsx"):
        out_path += ".xlsx"
    summary, details = build_frames(rows)
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        summary.to_excel(writer, index=False, sheet_name="Summary")
        details.to_excel(writer, index=False, sheet_name="Details")
    return out_path
