from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the degraded-enrichment log.

Each record describes one subject whose description fell back to the
placeholder. Records are written as JSON Lines with a fixed set of keys.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Workbook file name being enriched
        sheet: Sheet name within the workbook
        row: Worksheet row (1-based) of the subject
        subject: Boat type that could not be described
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Failure cause
    """
    timestamp: str  # ISO8601 UTC
    file: str
    sheet: str
    row: int
    subject: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, sheet: str, row: int, subject: str, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            subject=subject,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize to one JSON Lines entry (no extra keys)."""
        return json.dumps(asdict(self), ensure_ascii=False)
