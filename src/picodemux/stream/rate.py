from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable


class RateCalc:
    """Sliding-window estimate of the incoming sample rate.

    Parameters
    ----------
    window_s : float
        Events older than this many seconds are forgotten.
    clock : Callable[[], float], optional
        Monotonic time source in seconds, by default `time.monotonic`.
    """

    def __init__(self, window_s: float, clock: Callable[[], float] = time.monotonic):
        self.window_s = window_s
        self._clock = clock
        self._events: deque[tuple[float, int]] = deque()
        self._lock = threading.Lock()

    def update(self, n_samples: int) -> float:
        """Record `n_samples` arriving now and return samples per second."""
        with self._lock:
            now = self._clock()
            self._events.append((now, n_samples))
            while self._events and now - self._events[0][0] > self.window_s:
                self._events.popleft()

            span = now - self._events[0][0]
            if span <= 0:
                return 0.0
            # the oldest event's samples arrived before the span started
            total = sum(n for _, n in self._events) - self._events[0][1]
            return total / span

    def reset(self) -> None:
        with self._lock:
            self._events.clear()
