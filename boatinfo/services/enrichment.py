from __future__ import annotations

import logging
from typing import Any

import requests

from ..config.loader import SUBJECT_PLACEHOLDER, AppConfig
from ..models.enrichment_result import (
    Degraded,
    Enriched,
    EnrichmentOutcome,
    EnrichmentResult,
    placeholder_description,
)
from ..models.row_record import RowRecord

"""Enrichment client for the Perplexity chat completions endpoint.

One POST per subject, no retries. Failures are contained here: describe()
always returns an outcome, never raises, so a single bad subject cannot abort
the batch.
"""

__all__ = [
    "EnrichmentClient",
    "EnrichmentFailure",
    "build_prompt",
    "extract_content",
]

logger = logging.getLogger(__name__)


class EnrichmentFailure(Exception):
    """Raised internally when the service call does not yield text."""


def build_prompt(template: str, subject: str) -> str:
    """Fill the prompt template (first {BOAT_TYPE} occurrence) with the subject."""
    return template.replace(SUBJECT_PLACEHOLDER, subject, 1)


def extract_content(api_json: Any) -> str:
    """Return choices[0].message.content from a chat completion response.

    Raises:
        EnrichmentFailure: If the body does not have that shape or the content
            is not text
    """
    try:
        content = api_json["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise EnrichmentFailure(f"malformed response body: missing {e}") from e
    if not isinstance(content, str):
        raise EnrichmentFailure("malformed response body: content is not text")
    return content.strip()


class EnrichmentClient:
    """Produce boat type descriptions through the external completions API.

    Args:
        config: Application settings (credential, model, URL, template)
        session: Optional requests session; tests pass a fake one
    """

    def __init__(self, config: AppConfig, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session if session is not None else requests.Session()

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }

    def payload(self, subject: str) -> dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": [
                {"role": "user", "content": build_prompt(self.config.prompt_template, subject)},
            ],
        }

    def fetch(self, subject: str) -> str:
        """Call the service once and return the generated text.

        Raises:
            EnrichmentFailure: On network errors, non-2xx status or a body
                without text content
        """
        try:
            resp = self.session.post(self.config.api_url, headers=self._headers(), json=self.payload(subject))
        except requests.exceptions.RequestException as e:
            raise EnrichmentFailure(f"network error: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise EnrichmentFailure(f"HTTP {resp.status_code}: {resp.text[:200]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise EnrichmentFailure(f"invalid JSON response: {e}") from e
        return extract_content(data)

    def describe(self, subject: str) -> EnrichmentOutcome:
        """Return Enriched text, or Degraded placeholder when the call fails."""
        try:
            return Enriched(self.fetch(subject))
        except EnrichmentFailure as e:
            logger.warning(f"Error fetching info for {subject}: {e}")
            return Degraded(placeholder_description(subject), str(e))
        except Exception as e:
            # e.g. UnicodeEncodeError from http.client on a non-latin-1 header
            reason = f"{type(e).__name__}: {e}"
            logger.warning(f"Error fetching info for {subject}: {reason}")
            return Degraded(placeholder_description(subject), reason)

    def enrich(self, record: RowRecord) -> EnrichmentResult:
        return EnrichmentResult(row_id=record.row_id, subject=record.subject, outcome=self.describe(record.subject))
