"""Minimum-spacing rate limiter for upstream dispatches."""

from typing import Callable, Dict, Optional
import threading
import time


class RateLimiter:
    """Serializes callers so consecutive dispatches per source are spaced out.

    The lock is held while sleeping, so concurrent callers queue behind each
    other instead of bursting once the interval elapses.
    """

    def __init__(
        self,
        default_interval: float = 1.0,
        overrides: Optional[Dict[str, float]] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._default_interval = max(0.0, default_interval)
        self._overrides: Dict[str, float] = dict(overrides or {})
        self._last_called: Dict[str, float] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sleep = sleep

    @property
    def default_interval(self) -> float:
        return self._default_interval

    def set_interval(self, source: str, interval: float) -> None:
        self._overrides[source] = max(0.0, interval)

    def wait(self, source: str, interval: Optional[float] = None) -> float:
        min_interval = self._default_interval if interval is None else max(0.0, interval)
        min_interval = self._overrides.get(source, min_interval)

        with self._lock:
            now = self._clock()
            last = self._last_called.get(source)
            sleep_for = 0.0 if last is None else max(0.0, min_interval - (now - last))
            if sleep_for > 0:
                self._sleep(sleep_for)
                now = self._clock()
            self._last_called[source] = now

        return sleep_for

    def last_dispatch(self, source: str) -> Optional[float]:
        with self._lock:
            return self._last_called.get(source)
