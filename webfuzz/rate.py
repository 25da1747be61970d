"""Request rate limiting and measurement."""

from __future__ import annotations

import threading
import time
from collections import deque
from datetime import datetime
from typing import Any

_MICROS = 1_000_000


def _interval_for(rate: int) -> float:
    """Return the pause in seconds between ticks for a requests-per-second rate."""
    micros = max(_MICROS // rate, 1)
    return micros / _MICROS


def _unix_micros(moment: datetime | float) -> int:
    if isinstance(moment, datetime):
        return round(moment.timestamp() * _MICROS)
    return round(moment * _MICROS)


class RateThrottle:
    """Paces requests to the configured rate and measures the achieved rate."""

    def __init__(self, conf: Any) -> None:
        self.config = conf
        self.last_adjustment = datetime.now()
        self._lock = threading.Lock()
        self._ticker_lock = threading.Lock()
        if conf.rate > 0:
            size = conf.rate * 5
            self._interval = _interval_for(conf.rate)
        else:
            size = conf.threads * 5
            self._interval = 1 / _MICROS
        self._counter: deque[int] = deque(maxlen=max(size, 0))
        self._next_tick = time.monotonic() + self._interval

    def current_rate(self) -> int:
        """Return requests per second over the recently recorded completions."""
        with self._lock:
            values = list(self._counter)
        if not values:
            return 0
        elapsed_ms = (max(values) - min(values)) // 1000
        if elapsed_ms > 1:
            return 1000 * len(values) // elapsed_ms
        return 0

    def change_rate(self, rate: int) -> None:
        """Switch to a new requests-per-second rate and forget earlier measurements."""
        if rate <= 0:
            raise ValueError("rate must be a positive number of requests per second")
        with self._ticker_lock:
            self._interval = _interval_for(rate)
            self._next_tick = time.monotonic() + self._interval
        self.config.rate = rate
        with self._lock:
            self._counter = deque(maxlen=rate * 5)

    def tick(self, start: datetime | float, end: datetime | float) -> None:
        """Record a completed request; times are datetimes or seconds since the epoch."""
        with self._lock:
            self._counter.append(_unix_micros(end))

    def wait(self) -> None:
        """Block until the next request may be sent."""
        with self._ticker_lock:
            now = time.monotonic()
            target = self._next_tick
            if now < target:
                time.sleep(target - now)
                now = target
            self._next_tick = max(target + self._interval, now)