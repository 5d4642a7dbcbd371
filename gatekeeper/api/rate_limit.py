# =======================================================================================
# gatekeeper/api/rate_limit.py - Per-Client Request Rate Limiting
# =======================================================================================
import logging
import threading
import time
from datetime import timedelta
from typing import Callable, Dict
from fastapi import Request
from fastapi.responses import JSONResponse

from ..utils.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class TokenBucket:
    """Refills at `rate` tokens per second up to `capacity`; starts full."""

    __slots__ = ("rate", "capacity", "tokens", "updated")

    def __init__(self, rate: float, capacity: int, now: float):
        self.rate = rate
        self.capacity = capacity
        self.tokens = float(capacity)
        self.updated = now

    def take(self, now: float) -> bool:
        elapsed = max(0.0, now - self.updated)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self.updated = now
        if self.tokens >= 1.0:
            self.tokens -= 1.0
            return True
        return False


class RateLimiter:
    """
    One token bucket per client identifier.

    The bucket map is the only process-wide mutable state in the service and
    is only touched under `_lock`. It is emptied in bulk by `clear()` (run
    hourly by the cleanup worker), which resets every client's quota at once
    instead of expiring buckets individually.
    """

    def __init__(self, requests: int, window: timedelta, clock: Callable[[], float] = time.monotonic):
        self.requests = requests
        self.window = window
        self.rate = requests / max(window.total_seconds(), 1e-9)
        self._clock = clock
        self._buckets: Dict[str, TokenBucket] = {}
        self._lock = threading.Lock()

    def allow(self, identifier: str) -> bool:
        with self._lock:
            now = self._clock()
            bucket = self._buckets.get(identifier)
            if bucket is None:
                bucket = TokenBucket(self.rate, self.requests, now)
                self._buckets[identifier] = bucket
            return bucket.take(now)

    def check(self, identifier: str) -> None:
        if not self.allow(identifier):
            raise RateLimitExceededError()

    def clear(self) -> int:
        with self._lock:
            dropped = len(self._buckets)
            self._buckets = {}
        return dropped

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)


def client_identifier(request: Request) -> str:
    """Client IP, preferring the first X-Forwarded-For hop when proxied."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def rate_limit_middleware(limiter: RateLimiter):
    async def middleware(request: Request, call_next):
        identifier = client_identifier(request)
        try:
            limiter.check(identifier)
        except RateLimitExceededError as e:
            logger.warning("Rate limit exceeded for %s on %s", identifier, request.url.path)
            return JSONResponse(status_code=e.status_code, content={"detail": e.message})
        return await call_next(request)

    return middleware
