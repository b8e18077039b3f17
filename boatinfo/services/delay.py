from __future__ import annotations

import time
from collections.abc import Callable
from typing import Protocol

"""Inter-call delay strategies.

The pipeline pauses between API calls to stay under the provider's rate
limit. The pause is fixed, not adaptive, and is also applied after failed
calls. Tests use NoDelay.
"""

__all__ = [
    "DelayStrategy",
    "FixedDelay",
    "NoDelay",
]


class DelayStrategy(Protocol):
    def wait(self) -> None: ...

    def describe(self) -> str: ...


class FixedDelay:
    """Block for a fixed number of milliseconds on every wait()."""

    def __init__(self, milliseconds: int, sleep: Callable[[float], None] | None = None) -> None:
        if milliseconds < 0:
            raise ValueError(f"delay must be >= 0 ms, got {milliseconds}")
        self.milliseconds = milliseconds
        self._sleep = sleep if sleep is not None else time.sleep

    def wait(self) -> None:
        if self.milliseconds:
            self._sleep(self.milliseconds / 1000.0)

    def describe(self) -> str:
        return f"{self.milliseconds}ms"


class NoDelay:
    def wait(self) -> None:
        return None

    def describe(self) -> str:
        return "0ms"
