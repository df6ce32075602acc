"""In-process fixed-window rate limiter keyed by client address."""
import time
from dataclasses import dataclass
from typing import Callable, Dict


@dataclass
class Window:
    started: float
    count: int


class RateLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Window] = {}

    def hit(self, key: str) -> bool:
        """Record a request; return False once the key is over its limit for this window."""
        now = self._clock()
        window = self._windows.get(key)
        if window is None or now - window.started >= self.window_seconds:
            window = Window(started=now, count=0)
            self._windows[key] = window
            self._prune(now)

        window.count += 1
        return window.count <= self.max_requests

    def _prune(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if now - w.started >= self.window_seconds]
        for key in expired:
            del self._windows[key]

    def reset(self) -> None:
        self._windows.clear()
