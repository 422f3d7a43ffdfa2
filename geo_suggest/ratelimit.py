"""In-process fixed-window rate limiting per client key."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Request

from geo_suggest.config import RateLimitConfig
from geo_suggest.exceptions import RateLimitExceeded


@dataclass(frozen=True)
class RateLimitResult:
    count: int
    limit: int
    reset_seconds: int


class FixedWindowRateLimiter:
    def __init__(self, config: RateLimitConfig, clock: Callable[[], float] = time.time):
        self.config = config
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (window start epoch, count)
        self._windows: dict[str, tuple[int, int]] = {}

    def _window_start(self, now: float) -> int:
        window = self.config.window_seconds
        return (int(now) // window) * window

    def hit(self, key: str) -> RateLimitResult:
        now = self._clock()
        start = self._window_start(now)
        reset_seconds = max(0, int(start + self.config.window_seconds - now))

        with self._lock:
            window_start, count = self._windows.get(key, (start, 0))
            if window_start != start:
                count = 0
            count += 1
            self._windows[key] = (start, count)
            # Drop windows that have already closed
            if len(self._windows) > 10_000:
                self._windows = {k: v for k, v in self._windows.items() if v[0] == start}

        if count > self.config.requests:
            raise RateLimitExceeded(retry_after=max(1, reset_seconds))
        return RateLimitResult(count=count, limit=self.config.requests, reset_seconds=reset_seconds)


def client_key(request: Request) -> str:
    return request.client.host if request.client else "anonymous"


def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency: count this request against the app's limiter, if any."""
    limiter: Optional[FixedWindowRateLimiter] = getattr(request.app.state, "limiter", None)
    if limiter is not None and limiter.config.enabled:
        limiter.hit(client_key(request))
