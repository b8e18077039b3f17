from __future__ import annotations

import logging
import zipfile
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from ..models.row_record import FIRST_DATA_ROW, HEADER_ROW, RowRecord

"""Row source: subjects from an existing sheet (scan mode) or a list (list mode).

Row 1 of the sheet is the header. Data rows start at row 2 and every record
keeps the worksheet row number it came from, so the writer can put the
description back on the same row.
"""

__all__ = [
    "ColumnNotFound",
    "SheetNotFound",
    "WorkbookError",
    "find_column",
    "read_sheet",
    "read_subjects",
    "split_subject_list",
    "subjects_from_list",
]

logger = logging.getLogger(__name__)


class WorkbookError(Exception):
    """Raised when a workbook cannot be used as requested."""


class SheetNotFound(WorkbookError):
    """Raised when the requested sheet does not exist in the workbook."""

    def __init__(self, sheet_name: str) -> None:
        super().__init__(f"Sheet {sheet_name} not found in the workbook")
        self.sheet_name = sheet_name


class ColumnNotFound(WorkbookError):
    """Raised when the header row has no cell equal to the column name."""

    def __init__(self, column_name: str, sheet_name: str) -> None:
        super().__init__(f"Column {column_name} not found in sheet {sheet_name}")
        self.column_name = column_name
        self.sheet_name = sheet_name


def find_column(header_values: Iterable[Any], column_name: str) -> int | None:
    """Return the 1-based index of the header cell equal to column_name.

    Matching is exact and case-sensitive; non-text header cells never match.
    When the name occurs more than once the last occurrence wins.
    """
    found = None
    for idx, value in enumerate(header_values, start=1):
        if isinstance(value, str) and value == column_name:
            found = idx
    return found


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    return str(value).strip()


def read_sheet(path: Path, sheet_name: str) -> pd.DataFrame:
    """Read one sheet without header inference.

    Cell text is kept verbatim: strings such as "NA" or "None" are not turned
    into missing values. The DataFrame index is the 0-based worksheet row.

    Formula cells yield the value cached by the last application that
    calculated the workbook. Formulas are never evaluated here, so a formula
    that was never calculated (e.g. written by openpyxl) reads as empty.

    Raises:
        SheetNotFound: If the workbook has no sheet with that name
        WorkbookError: If the file is not a readable workbook
    """
    try:
        with pd.ExcelFile(path, engine="openpyxl") as xls:
            if sheet_name not in [str(n) for n in xls.sheet_names]:
                raise SheetNotFound(sheet_name)
            return xls.parse(sheet_name, header=None, keep_default_na=False, na_values=[])
    except (OSError, ValueError, zipfile.BadZipFile, InvalidFileException) as e:
        raise WorkbookError(f"cannot read workbook {path}: {e}") from e


def read_subjects(path: Path, sheet_name: str, column_name: str) -> list[RowRecord]:
    """Scan a sheet column and return one RowRecord per non-empty data cell.

    Steps:
    1. Locate the sheet (SheetNotFound if absent)
    2. Locate the column in the header row (ColumnNotFound if absent)
    3. Walk data rows in ascending order, skipping empty cells

    Uncalculated formula cells count as empty (see read_sheet); the number of
    skipped cells is logged at DEBUG.

    Args:
        path: Workbook path
        sheet_name: Sheet containing the subjects
        column_name: Header text of the subject column

    Returns:
        Records in worksheet row order, row_id >= 2
    """
    df = read_sheet(path, sheet_name)
    if df.shape[0] < HEADER_ROW:
        raise ColumnNotFound(column_name, sheet_name)

    col_idx = find_column(df.iloc[0].tolist(), column_name)
    if col_idx is None:
        raise ColumnNotFound(column_name, sheet_name)

    records: list[RowRecord] = []
    skipped = 0
    for pos, value in enumerate(df.iloc[1:, col_idx - 1].tolist()):
        subject = _cell_text(value)
        if subject:
            records.append(RowRecord(row_id=pos + FIRST_DATA_ROW, subject=subject))
        else:
            skipped += 1
    if skipped:
        logger.debug(f"{sheet_name}!{column_name}: skipped {skipped} empty cells (blank or uncalculated formula)")
    return records


def split_subject_list(text: str, delimiter: str = ",") -> list[str]:
    """Split a delimited subject list, trimming items and dropping empty ones."""
    return [item.strip() for item in text.split(delimiter) if item.strip()]


def subjects_from_list(subjects: Sequence[str]) -> list[RowRecord]:
    """Build records for a freshly created sheet: first subject on row 2."""
    return [RowRecord(row_id=idx + FIRST_DATA_ROW, subject=s) for idx, s in enumerate(subjects)]
