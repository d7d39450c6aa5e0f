"""In-memory sliding-window rate limiting for the public API."""

import math
import time
from collections import defaultdict
from threading import Lock

from couponpool.core.config import settings


class RateLimiter:
    """Sliding-window rate limiter keyed by an arbitrary string (usually a client IP).

    State lives in process memory: it is shared by every request handled by
    this worker and starts empty whenever the process restarts.
    """

    def __init__(self, max_requests: int, window_seconds: int = 60):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._requests: dict[str, list[float]] = defaultdict(list)
        self._lock = Lock()

    def _prune(self, key: str, now: float) -> list[float]:
        cutoff = now - self.window_seconds
        self._requests[key] = [t for t in self._requests[key] if t > cutoff]
        return self._requests[key]

    def is_allowed(self, key: str) -> bool:
        """Record a hit for ``key`` and return False if the limit is exceeded."""
        now = time.monotonic()

        with self._lock:
            timestamps = self._prune(key, now)
            if len(timestamps) >= self.max_requests:
                return False

            timestamps.append(now)
            return True

    def retry_after(self, key: str) -> int:
        """Seconds until ``key`` may make another request (0 if it may now)."""
        now = time.monotonic()

        with self._lock:
            timestamps = self._prune(key, now)
            if len(timestamps) < self.max_requests:
                return 0
            oldest = timestamps[-self.max_requests]
            return max(1, math.ceil(oldest + self.window_seconds - now))

    def reset(self) -> None:
        """Clear all tracked state (useful for testing)."""
        with self._lock:
            self._requests.clear()


# Process-scoped limiters; both start empty on every restart.
api_rate_limiter = RateLimiter(
    max_requests=settings.RATE_LIMIT_API_REQUESTS,
    window_seconds=settings.RATE_LIMIT_API_WINDOW_SECONDS,
)

claim_rate_limiter = RateLimiter(
    max_requests=settings.RATE_LIMIT_CLAIMS_PER_MINUTE,
    window_seconds=60,
)
