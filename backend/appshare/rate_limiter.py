"""In-process fixed-window rate limiting keyed by client IP."""
from __future__ import annotations

import logging

from limits import RateLimitItemPerSecond, strategies
from limits.storage import MemoryStorage

from appshare.metrics import RATE_LIMITED_TOTAL

logger = logging.getLogger(__name__)


class FixedWindowRateLimiter:
    """Allow `points` hits per IP in each `window_seconds` window."""

    def __init__(self, points: int, window_seconds: int, *, name: str = "global") -> None:
        self.points = points
        self.window_seconds = window_seconds
        self.name = name
        self._storage = MemoryStorage()
        self._strategy = strategies.FixedWindowRateLimiter(self._storage)
        self._item = RateLimitItemPerSecond(points, window_seconds, namespace=f"rl:{name}")

    def consume(self, ip: str) -> bool:
        if self._strategy.hit(self._item, ip):
            return True
        RATE_LIMITED_TOTAL.labels(limiter=self.name).inc()
        logger.warning(
            "Rate limit (%s/%ss) exceeded",
            self.points,
            self.window_seconds,
            extra={"limiter": self.name},
        )
        return False

    def remaining(self, ip: str) -> int:
        return self._strategy.get_window_stats(self._item, ip).remaining

    def reset(self) -> None:
        self._storage.reset()
