"""
Inactivity monitor — decides when a session has gone idle too long.

Pure policy: no storage, no clock of its own, no shared state.  The
registry hands it `now` and `last_accessed` (epoch seconds) on every
status check.
"""

import math
from dataclasses import dataclass

DEFAULT_MAX_INACTIVITY_SECONDS = 600


@dataclass(frozen=True)
class InactivityCheck:
    inactivity: int
    expired: bool


@dataclass(frozen=True)
class InactivityMonitor:
    max_inactivity_seconds: int = DEFAULT_MAX_INACTIVITY_SECONDS

    def __post_init__(self) -> None:
        if self.max_inactivity_seconds <= 0:
            raise ValueError("max_inactivity_seconds must be positive")

    def evaluate(self, now: float, last_accessed: float) -> InactivityCheck:
        # Clock skew between writers must not produce negative idle time.
        inactivity = math.floor(max(0.0, now - last_accessed))
        return InactivityCheck(
            inactivity=inactivity,
            expired=inactivity >= self.max_inactivity_seconds,
        )
