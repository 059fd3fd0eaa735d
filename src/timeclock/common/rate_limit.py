from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from ..core.constants import RATE_LIMIT_CLEANUP_THRESHOLD


@dataclass
class _Window:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float

    def headers(self) -> dict:
        return {"X-RateLimit-Remaining": str(self.remaining), "X-RateLimit-Reset": str(math.ceil(self.reset_at))}


class RateLimiter:
    """Fixed-window counter kept in process memory.

    Single-process only: nothing is persisted or shared between workers. Expired
    keys are purged lazily once the store grows past ``cleanup_threshold``.
    """

    def __init__(
        self,
        *,
        max_attempts: int,
        window_seconds: float,
        cleanup_threshold: int = RATE_LIMIT_CLEANUP_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ):
        self._max = int(max_attempts)
        self._window = float(window_seconds)
        self._cleanup_threshold = int(cleanup_threshold)
        self._clock = clock
        self._store: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._store)

    def hit(self, key: str) -> RateLimitResult:
        now = self._clock()
        with self._lock:
            if len(self._store) > self._cleanup_threshold:
                for k in [k for k, w in self._store.items() if w.reset_at < now]:
                    del self._store[k]

            entry = self._store.get(key)
            if entry is None or entry.reset_at < now:
                reset_at = now + self._window
                self._store[key] = _Window(count=1, reset_at=reset_at)
                return RateLimitResult(allowed=True, remaining=self._max - 1, reset_at=reset_at)

            entry.count += 1
            if entry.count > self._max:
                return RateLimitResult(allowed=False, remaining=0, reset_at=entry.reset_at)
            return RateLimitResult(allowed=True, remaining=self._max - entry.count, reset_at=entry.reset_at)

    def reset(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)
