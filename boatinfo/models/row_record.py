from __future__ import annotations

from dataclasses import dataclass

"""RowRecord model.

A RowRecord is one subject (boat type) tied to the worksheet row it came from,
or the row it will be written to when the sheet is built from a list.
"""

__all__ = [
    "HEADER_ROW",
    "FIRST_DATA_ROW",
    "RowRecord",
]

HEADER_ROW = 1
FIRST_DATA_ROW = 2


@dataclass(frozen=True)
class RowRecord:
    """A single subject and its stable 1-based worksheet row.

    row_id never points at the header row and is never renumbered during a run.
    """
    row_id: int  # worksheet row (2 = first data row)
    subject: str  # trimmed, non-empty boat type name

    def __post_init__(self) -> None:
        if self.row_id < FIRST_DATA_ROW:
            raise ValueError(f"row_id must be >= {FIRST_DATA_ROW}, got {self.row_id}")
        if not self.subject:
            raise ValueError("subject must be non-empty")
