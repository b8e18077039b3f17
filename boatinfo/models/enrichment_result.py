from __future__ import annotations

from dataclasses import dataclass
from typing import Union

"""Enrichment outcome models.

An enrichment either produces real model text (Enriched) or falls back to a
placeholder (Degraded). Both carry the description that ends up in the sheet,
so callers that only care about the text can ignore the distinction.
"""

__all__ = [
    "Degraded",
    "Enriched",
    "EnrichmentOutcome",
    "EnrichmentResult",
    "placeholder_description",
]


def placeholder_description(subject: str) -> str:
    """Description written when the external service could not be used."""
    return f"Error: Could not fetch information for {subject}"


@dataclass(frozen=True)
class Enriched:
    description: str


@dataclass(frozen=True)
class Degraded:
    description: str  # always placeholder_description(subject)
    cause: str  # short reason, e.g. "HTTP 500" or the exception text


EnrichmentOutcome = Union[Enriched, Degraded]


@dataclass(frozen=True)
class EnrichmentResult:
    """Outcome of enriching one RowRecord, ready for the sheet writer."""
    row_id: int
    subject: str
    outcome: EnrichmentOutcome

    @property
    def description(self) -> str:
        return self.outcome.description

    @property
    def degraded(self) -> bool:
        return isinstance(self.outcome, Degraded)
