"""
Elapsed-time clock for trace blocks.

Started when the tracer is created. Reset once, when the server begins
stopping, so shutdown is timed separately from startup.
"""

from __future__ import annotations

import time
from typing import Callable

__all__ = ["ElapsedClock", "format_elapsed"]


def format_elapsed(seconds: float) -> str:
    """Format a duration as ``HH:MM:SS.mmm``."""
    millis = int(round(max(seconds, 0.0) * 1000))
    hours, millis = divmod(millis, 3_600_000)
    minutes, millis = divmod(millis, 60_000)
    secs, millis = divmod(millis, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"


class ElapsedClock:
    """
    Monotonic stopwatch.

    ``time_source`` defaults to :func:`time.monotonic`; tests pass a fake.
    """

    __slots__ = ("_time_source", "_start", "_running")

    def __init__(self, time_source: Callable[[], float] = time.monotonic, *, start: bool = True) -> None:
        self._time_source = time_source
        self._start = time_source() if start else 0.0
        self._running = start

    @classmethod
    def started(cls, time_source: Callable[[], float] = time.monotonic) -> "ElapsedClock":
        return cls(time_source)

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start counting from now. No-op if already running."""
        if not self._running:
            self._start = self._time_source()
            self._running = True

    def reset(self) -> None:
        """Rebase the clock to now and keep it running."""
        self._start = self._time_source()
        self._running = True

    def elapsed(self) -> float:
        """Seconds since start (or since the last reset)."""
        if not self._running:
            return 0.0
        return max(self._time_source() - self._start, 0.0)

    def format(self) -> str:
        return format_elapsed(self.elapsed())

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f"ElapsedClock(elapsed={self.format()!r}, running={self._running})"
