"""A stopwatch that accumulates time over several sessions."""

from __future__ import annotations

import time
from typing import Callable


class Stopwatch:
    """Measures time between start and stop calls, summed over sessions."""

    def __init__(self, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self._start: float | None = None
        self._diff_ms = 0.0
        self._total_ms = 0.0
        self.running = False
        self.sessions = 0

    def _since_start_ms(self) -> float:
        if self._start is None:
            raise RuntimeError("stopwatch was never started")
        return (self._clock() - self._start) * 1000.0

    def start(self) -> None:
        """Begin a session."""
        self._start = self._clock()
        self.running = True

    def stop(self) -> None:
        """End the session and add its length to the total."""
        self._diff_ms = self._since_start_ms()
        self._total_ms += self._diff_ms
        self.running = False
        self.sessions += 1

    def reset(self) -> None:
        """Zero the totals; a running stopwatch restarts its session now."""
        self._diff_ms = 0.0
        self._total_ms = 0.0
        self.sessions = 0
        if self.running:
            self._start = self._clock()

    def elapsed(self) -> float:
        """Total time in seconds, including the running session if any."""
        total = self._total_ms
        if self.running:
            total += self._since_start_ms()
        return total / 1000.0

    def average(self) -> float:
        """Mean length of completed sessions, in milliseconds.

        Raises ZeroDivisionError when no session has completed.
        """
        if self.sessions == 0:
            raise ZeroDivisionError("no completed stopwatch sessions")
        return self._total_ms / self.sessions

    def __enter__(self) -> "Stopwatch":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()