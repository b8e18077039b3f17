from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

"""Run result model.

Aggregated metrics for one pipeline run, used for the SUMMARY output line and
returned to the CLI.
"""

__all__ = [
    "RunResult",
]


@dataclass(frozen=True)
class RunResult:
    """Aggregated results of a single enrichment run."""
    total_subjects: int  # rows loaded (scan mode) or built (list mode)
    enriched: int  # descriptions produced by the service
    degraded: int  # placeholder descriptions
    written_rows: int  # cells written back to the workbook
    workbook: Path  # file that was updated
    sheet_name: str
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    error_log: Path | None = None  # JSON Lines file for degraded rows, if any
