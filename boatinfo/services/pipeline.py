from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from ..excel.reader import read_subjects, subjects_from_list
from ..excel.writer import INFO_HEADER, NEW_SHEET_NAME, SUBJECT_HEADER, create_workbook, update_column
from ..logging.error_log import ErrorLogBuffer
from ..models.enrichment_result import Degraded, EnrichmentResult
from ..models.error_record import ErrorRecord
from ..models.row_record import RowRecord
from ..models.run_result import RunResult
from .delay import DelayStrategy
from .enrichment import EnrichmentClient
from .progress import ProgressTracker

"""Run driver for the boat information enricher.

START -> (CREATE_FILE) -> LOAD_OR_BUILD_ROWS -> ENRICH_ROW* -> WRITE_BACK -> DONE

Errors while creating, loading or writing the workbook propagate to the
caller and end the run. Enrichment failures are absorbed by the client and
only show up as degraded results. The workbook is written once, after every
row has been enriched. The optional error log is flushed after that; a
failure to write it is logged and does not end the run.
"""

__all__ = [
    "InputNotFound",
    "PipelineError",
    "RunOptions",
    "enrich_all",
    "load_rows",
    "run",
]

logger = logging.getLogger(__name__)

DEGRADED_ERROR_TYPE = "ENRICHMENT_FAILED"


class PipelineError(Exception):
    """Base exception for fatal run errors raised by the driver itself."""


class InputNotFound(PipelineError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"File not found: {path}")
        self.path = path


@dataclass(frozen=True)
class RunOptions:
    """What to enrich and where to write it (built from CLI arguments)."""
    file: Path | None = None
    sheet: str = "Sheet1"
    column: str = SUBJECT_HEADER
    target: str = INFO_HEADER
    create: bool = False
    subjects: Sequence[str] = field(default_factory=tuple)
    output: Path = Path("boat-types.xlsx")


def load_rows(options: RunOptions) -> tuple[Path, str, list[RowRecord]]:
    """Create the workbook when requested and return (workbook, sheet, rows).

    Raises:
        PipelineError: If create mode has no subjects or scan mode has no file
        InputNotFound: If the input workbook does not exist
        WorkbookError: If the sheet or column cannot be found
        WriteFailure: If the new workbook cannot be saved
    """
    if options.create:
        if not options.subjects:
            raise PipelineError("a subject list is required when creating a new file")
        logger.info(f"Creating a new Excel file with {len(options.subjects)} boat types...")
        create_workbook(options.output, options.subjects)
        return options.output, NEW_SHEET_NAME, subjects_from_list(options.subjects)

    if options.file is None:
        raise PipelineError("an input file is required when processing an existing file")
    if not options.file.exists():
        raise InputNotFound(options.file)

    logger.info(f"Reading boat types from {options.file}, sheet {options.sheet}, column {options.column}...")
    rows = read_subjects(options.file, options.sheet, options.column)
    logger.info(f"Found {len(rows)} boat types.")
    return options.file, options.sheet, rows


def enrich_all(
    rows: Sequence[RowRecord],
    client: EnrichmentClient,
    delay: DelayStrategy,
) -> list[EnrichmentResult]:
    """Enrich rows one at a time, pausing between calls.

    The delay runs after every row except the last, whether or not the call
    succeeded.
    """
    total = len(rows)
    results: list[EnrichmentResult] = []
    with ProgressTracker(total) as tracker:
        for i, row in enumerate(rows):
            logger.info(f"[{i + 1}/{total}] Processing: {row.subject}")
            tracker.start(row.subject)
            result = client.enrich(row)
            tracker.finish(degraded=result.degraded)
            results.append(result)

            if i < total - 1:
                logger.info(f"Waiting {delay.describe()} before next request...")
                delay.wait()
    return results


def _record_degraded(
    results: Sequence[EnrichmentResult], workbook: Path, sheet: str, error_log: ErrorLogBuffer
) -> None:
    for r in results:
        if isinstance(r.outcome, Degraded):
            error_log.append(
                ErrorRecord.create(workbook.name, sheet, r.row_id, r.subject, DEGRADED_ERROR_TYPE, r.outcome.cause)
            )


def run(
    options: RunOptions,
    client: EnrichmentClient,
    delay: DelayStrategy,
    error_log: ErrorLogBuffer | None = None,
) -> RunResult:
    """Execute a full run: load or build rows, enrich them, write back.

    Args:
        options: Run options
        client: Enrichment client (owns the credential and prompt template)
        delay: Pause strategy applied between API calls
        error_log: Buffer for degraded rows; flushed after write-back

    Returns:
        RunResult with counts and timing
    """
    start = datetime.now(UTC)

    workbook, sheet, rows = load_rows(options)

    logger.info("Fetching information from Perplexity API...")
    results = enrich_all(rows, client, delay)
    degraded = sum(1 for r in results if r.degraded)

    logger.info(f"Updating {workbook} with the retrieved information...")
    written = update_column(workbook, sheet, options.target, results)

    log_path = None
    if error_log is not None:
        _record_degraded(results, workbook, sheet, error_log)
        try:
            log_path = error_log.flush()
        except OSError as e:
            logger.warning(f"could not write error log: {e}")
        if log_path is not None:
            logger.warning(f"{degraded} boat types could not be described; details in {log_path}")

    end = datetime.now(UTC)
    return RunResult(
        total_subjects=len(rows),
        enriched=len(results) - degraded,
        degraded=degraded,
        written_rows=written,
        workbook=workbook,
        sheet_name=sheet,
        start_time=start,
        end_time=end,
        elapsed_seconds=(end - start).total_seconds(),
        error_log=log_path,
    )
