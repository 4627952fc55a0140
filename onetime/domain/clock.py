"""
Clock

Source of millisecond timestamps for creation, expiry and download events.
"""

import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Abstract wall clock returning milliseconds since the Unix epoch."""

    @abstractmethod
    def now_ms(self) -> int:
        pass  # pragma: no cover


class SystemClock(Clock):
    """Real wall clock."""

    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000


class FixedClock(Clock):
    """
    Clock pinned to a fixed instant for deterministic tests.

    Args:
        fixed_ms: Timestamp returned by now_ms()
    """

    def __init__(self, fixed_ms: int = 0):
        self.fixed_ms = fixed_ms

    def now_ms(self) -> int:
        return self.fixed_ms

    def advance(self, delta_ms: int) -> int:
        """Move the clock forward and return the new instant."""
        self.fixed_ms += delta_ms
        return self.fixed_ms
