from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display service with tqdm (TTY only).

A single bar counts enriched subjects. In non-TTY environments (CI, pipes)
the bar is disabled to avoid ANSI control sequence spam; the pipeline's
per-subject INFO lines remain.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Return True if stdout is a TTY and a progress bar should be shown."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress tracker using tqdm for subject enrichment.

    Usable as a context manager; the bar is closed on exit.
    """

    def __init__(self, total: int, *, description: str = "Enriching") -> None:
        """Initialize progress tracker.

        Args:
            total: Number of subjects to enrich
            description: Description for the progress bar
        """
        self.total = total
        self.description = description
        self.current = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total,
                desc=description,
                unit="boat",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def start(self, subject: str) -> None:
        self.current += 1
        if self.enabled and self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({subject})")

    def finish(self, degraded: bool = False) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_description(self.description)
            if degraded:
                self.pbar.set_postfix(last="error")

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
