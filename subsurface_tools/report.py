"""Tabular reports of fused position and dive data.

Reports are pandas DataFrames written as tab separated text or, for
``.xlsx`` paths, as an openpyxl workbook with a styled header.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional

import pandas as pd
from openpyxl.styles import Font, PatternFill
from openpyxl.worksheet.worksheet import Worksheet

from .config import EXCEL_DATETIME_FORMAT, REPORT_COLUMNS
from .correlation import FusedRecord, fuse
from .divelog import DiveLog
from .gpx import TrackReader
from .utils import parse_iso8601

LOGGER = logging.getLogger(__name__)

REPORT_SHEET = "Date Fusion"
_MIN_WIDTH = 10
_MAX_WIDTH = 40

__all__ = ["REPORT_SHEET", "parse_instants", "fuse_dates", "build_report", "write_report"]


def parse_instants(lines: Iterable[str]) -> List[datetime]:
    """ISO timestamps, one per non-blank line."""

    return [parse_iso8601(line) for line in lines if line.strip()]


def fuse_dates(
    instants: Iterable[datetime],
    track: Optional[TrackReader] = None,
    dive_log: Optional[DiveLog] = None,
) -> List[FusedRecord]:
    return [fuse(instant, track, dive_log) for instant in instants]


def build_report(records: Iterable[FusedRecord]) -> pd.DataFrame:
    """One row per record, columns in report order."""

    frame = pd.DataFrame([record.as_row() for record in records], columns=REPORT_COLUMNS)
    if not frame.empty:
        frame["DateTime"] = pd.to_datetime(frame["DateTime"], utc=True)
    return frame


def _style_header(ws: Worksheet, columns: int) -> None:
    font = Font(bold=True)
    fill = PatternFill(start_color="DDEBF7", end_color="DDEBF7", fill_type="solid")
    for col in range(1, columns + 1):
        cell = ws.cell(row=1, column=col)
        cell.font = font
        cell.fill = fill


def _autosize(ws: Worksheet) -> None:
    for col_cells in ws.columns:
        max_len = max((len(str(cell.value)) for cell in col_cells if cell.value is not None), default=0)
        col_letter = getattr(col_cells[0], "column_letter", None)
        if col_letter:
            ws.column_dimensions[col_letter].width = min(_MAX_WIDTH, max(_MIN_WIDTH, max_len + 2))


def write_report(frame: pd.DataFrame, path: str | Path) -> Path:
    """Write ``frame`` to ``path`` (``.xlsx`` workbook, tab separated otherwise)."""

    target = Path(path)
    if target.suffix.lower() == ".xlsx":
        out = frame.copy()
        if not out.empty:
            # Excel cannot store timezone-aware values
            out["DateTime"] = out["DateTime"].dt.tz_localize(None)
        with pd.ExcelWriter(
            target, engine="openpyxl", datetime_format=EXCEL_DATETIME_FORMAT
        ) as writer:
            out.to_excel(writer, sheet_name=REPORT_SHEET, index=False)
            ws = writer.sheets[REPORT_SHEET]
            _style_header(ws, len(out.columns))
            _autosize(ws)
    else:
        out = frame.copy()
        if not out.empty:
            out["DateTime"] = out["DateTime"].dt.strftime("%Y-%m-%dT%H:%M:%SZ")
        out.to_csv(target, sep="\t", index=False)
    LOGGER.info("Wrote %d report rows to %s", len(frame), target)
    return target
