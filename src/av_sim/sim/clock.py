from __future__ import annotations

import threading
import time

SEC = 1.0
MS = 0.001
MIN = 60.0
HOUR = 3600.0


def hours(x: float) -> float:
    return x * HOUR


class WallClock:
    """Real time. sleep() blocks the calling thread."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        if seconds > 0:
            time.sleep(seconds)


class VirtualClock:
    """
    Manually advanced clock for tests: sleep() returns immediately and moves
    now() forward, so a full drive runs without wall-clock delays.
    """

    def __init__(self, start: float = 0.0):
        self._t = float(start)
        self._lock = threading.Lock()
        self.sleeps = 0

    def now(self) -> float:
        return self._t

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError(f"cannot move time backwards by {seconds}")
        with self._lock:
            self._t += seconds
            return self._t

    def sleep(self, seconds: float) -> None:
        self.advance(max(0.0, seconds))
        self.sleeps += 1
