"""Minimum-interval throttle for outbound pool API calls."""

from __future__ import annotations

import time
from threading import Lock
from typing import Callable


class Throttle:
    """Space consecutive calls to the same pool at least ``interval`` apart.

    The first call goes through immediately. Each pool owns its own throttle,
    so pools never wait on each other.
    """

    def __init__(
        self,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.interval = max(0.0, float(interval))
        self._clock = clock
        self._sleep = sleep
        self._lock = Lock()
        self._last_call: float | None = None

    def wait(self) -> float:
        """Block until the next call is allowed; return the time slept."""

        with self._lock:
            now = self._clock()
            delay = 0.0
            if self._last_call is not None:
                delay = self._last_call + self.interval - now
            if delay > 0:
                self._sleep(delay)
                now += delay
            else:
                delay = 0.0
            self._last_call = now
            return delay


__all__ = ["Throttle"]
