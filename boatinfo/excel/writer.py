from __future__ import annotations

import logging
import os
import tempfile
import zipfile
from collections.abc import Iterable, Sequence
from pathlib import Path

from openpyxl import Workbook, load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from ..models.enrichment_result import EnrichmentResult
from ..models.row_record import HEADER_ROW
from .reader import SheetNotFound, WorkbookError, find_column

"""Sheet writer: write descriptions back and build new subject workbooks.

The workbook is loaded once, modified in memory and saved once. Saving goes
through a temporary file in the target directory followed by os.replace, so
the original file is either untouched or fully rewritten.
"""

__all__ = [
    "NEW_SHEET_NAME",
    "SUBJECT_HEADER",
    "INFO_HEADER",
    "WriteFailure",
    "create_workbook",
    "save_workbook",
    "update_column",
]

logger = logging.getLogger(__name__)

NEW_SHEET_NAME = "Boat Types"
SUBJECT_HEADER = "Boat Type"
INFO_HEADER = "Information"
# (header, width) for sheets built by create_workbook
NEW_SHEET_COLUMNS = [(SUBJECT_HEADER, 20), (INFO_HEADER, 80)]


class WriteFailure(Exception):
    """Raised when a workbook cannot be persisted."""


def save_workbook(wb: Workbook, path: Path) -> None:
    """Persist a workbook to path in a single replace step.

    Raises:
        WriteFailure: If the temporary file cannot be written or moved
    """
    tmp_path: Path | None = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.resolve().parent)
        os.close(fd)
        tmp_path = Path(tmp_name)
        wb.save(tmp_path)
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise WriteFailure(f"cannot write workbook {path}: {e}") from e


def _header_values(ws) -> list[object]:
    return [cell.value for cell in ws[HEADER_ROW]]


def update_column(
    path: Path,
    sheet_name: str,
    target_column: str,
    results: Iterable[EnrichmentResult],
) -> int:
    """Write each result's description into target_column at its row.

    The column is created after the last used column when the header row has
    no cell equal to target_column. The sheet itself is never created.

    Args:
        path: Existing workbook path
        sheet_name: Sheet to update
        target_column: Header text of the description column
        results: Enrichment results keyed by worksheet row

    Returns:
        Number of cells written

    Raises:
        SheetNotFound: If the sheet does not exist
        WorkbookError: If the file is not a readable workbook
        WriteFailure: If saving fails
    """
    try:
        wb = load_workbook(path)
    except (OSError, zipfile.BadZipFile, InvalidFileException) as e:
        raise WorkbookError(f"cannot read workbook {path}: {e}") from e

    if sheet_name not in wb.sheetnames:
        raise SheetNotFound(sheet_name)
    ws = wb[sheet_name]

    col_idx = find_column(_header_values(ws), target_column)
    if col_idx is None:
        col_idx = ws.max_column + 1
        ws.cell(row=HEADER_ROW, column=col_idx, value=target_column)
        logger.debug(f"added column '{target_column}' at index {col_idx}")

    written = 0
    for result in results:
        ws.cell(row=result.row_id, column=col_idx, value=result.description)
        written += 1

    save_workbook(wb, path)
    logger.info(f"Successfully updated {written} rows in {path}")
    return written


def create_workbook(path: Path, subjects: Sequence[str]) -> None:
    """Create a workbook with a "Boat Types" sheet listing the subjects.

    The sheet has the header ["Boat Type", "Information"] and one row per
    subject with the Information cell left empty.

    Raises:
        WriteFailure: If saving fails
    """
    wb = Workbook()
    ws = wb.active
    ws.title = NEW_SHEET_NAME

    for idx, (header, width) in enumerate(NEW_SHEET_COLUMNS, start=1):
        ws.cell(row=HEADER_ROW, column=idx, value=header)
        ws.column_dimensions[get_column_letter(idx)].width = width

    for subject in subjects:
        ws.append([subject, None])

    save_workbook(wb, path)
    logger.info(f"Created new Excel file at {path} with {len(subjects)} boat types")
