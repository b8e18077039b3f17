from .reader import (
    ColumnNotFound,
    SheetNotFound,
    WorkbookError,
    read_subjects,
    split_subject_list,
    subjects_from_list,
)
from .writer import WriteFailure, create_workbook, update_column

__all__ = [
    "ColumnNotFound",
    "SheetNotFound",
    "WorkbookError",
    "WriteFailure",
    "create_workbook",
    "read_subjects",
    "split_subject_list",
    "subjects_from_list",
    "update_column",
]
