"""Per-client request limits for the ``/api`` surface.

Counts live in process memory, so each server process enforces its own
window.
"""

import math
import time

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

from ntando.config import Settings


class ClientRateLimiter:
    """Fixed-window request counting keyed by client address."""

    def __init__(self, requests: int, window_seconds: int):
        self.item = RateLimitItemPerSecond(requests, window_seconds)
        self._limiter = FixedWindowRateLimiter(MemoryStorage())

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientRateLimiter | None":
        if not settings.rate_limit_enabled:
            return None
        return cls(settings.rate_limit_requests, settings.rate_limit_window_seconds)

    def hit(self, client: str) -> int | None:
        """Count one request from ``client``.

        Returns None while the client is within its limit, otherwise the
        number of seconds until its window resets.
        """
        if self._limiter.hit(self.item, client):
            return None
        reset_at, _ = self._limiter.get_window_stats(self.item, client)
        return max(1, math.ceil(reset_at - time.time()))
