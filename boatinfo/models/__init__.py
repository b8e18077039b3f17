"""Domain models for the boat information enricher."""

from .enrichment_result import (
    Degraded,
    Enriched,
    EnrichmentOutcome,
    EnrichmentResult,
    placeholder_description,
)
from .error_record import ErrorRecord
from .row_record import FIRST_DATA_ROW, HEADER_ROW, RowRecord
from .run_result import RunResult

__all__ = [
    # Row source
    "FIRST_DATA_ROW",
    "HEADER_ROW",
    "RowRecord",
    # Enrichment
    "Degraded",
    "Enriched",
    "EnrichmentOutcome",
    "EnrichmentResult",
    "placeholder_description",
    # Reporting
    "ErrorRecord",
    "RunResult",
]
