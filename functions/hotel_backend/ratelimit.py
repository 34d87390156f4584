"""
Fixed-window rate limiting for public endpoints.

Supports an in-memory limiter for tests/local runs and a Redis-backed
implementation for production (INCR + EXPIRE per window key).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol

import redis
from redis import exceptions as redis_exceptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitStatus:
    count: int
    limit: int
    reset_in: int

    @property
    def allowed(self) -> bool:
        return self.count <= self.limit


class RateLimiter(Protocol):
    """Counts hits per key inside the current window."""

    def hit(self, key: str) -> RateLimitStatus:
        ...

    def reset(self) -> None:
        ...


@dataclass
class InMemoryRateLimiter:
    """Process-local fixed-window counter."""

    limit: int = 5
    window_seconds: int = 15 * 60
    clock: Callable[[], float] = time.time
    windows: dict[str, tuple[float, int]] = field(default_factory=dict)
    last_sweep: float = field(default=0.0, repr=False)

    def sweep(self, now: float) -> None:
        """Drop windows that have expired so idle sources do not accumulate."""
        for key, (started, _) in list(self.windows.items()):
            if now - started >= self.window_seconds:
                self.windows.pop(key, None)
        self.last_sweep = now

    def hit(self, key: str) -> RateLimitStatus:
        now = self.clock()
        if now - self.last_sweep >= self.window_seconds:
            self.sweep(now)
        started, count = self.windows.get(key, (now, 0))
        if now - started >= self.window_seconds:
            started, count = now, 0
        count += 1
        self.windows[key] = (started, count)
        reset_in = max(int(started + self.window_seconds - now), 0)
        return RateLimitStatus(count=count, limit=self.limit, reset_in=reset_in)

    def reset(self) -> None:
        self.windows.clear()


@dataclass
class RedisRateLimiter:
    """Redis-backed counter shared across service instances."""

    url: str
    limit: int = 5
    window_seconds: int = 15 * 60
    key_prefix: str = "hotel:ratelimit:contact"

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def hit(self, key: str) -> RateLimitStatus:
        redis_key = f"{self.key_prefix}:{key}"
        try:
            pipe = self.client.pipeline()
            pipe.incr(redis_key)
            pipe.ttl(redis_key)
            count, ttl = pipe.execute()
            if ttl is None or ttl < 0:
                self.client.expire(redis_key, self.window_seconds)
                ttl = self.window_seconds
        except redis_exceptions.ConnectionError:
            # Reconnect on the next hit; a Redis outage must not block the form.
            logger.warning("Rate limiter unavailable, allowing request key=%s", key)
            self.client = redis.Redis.from_url(self.url)
            return RateLimitStatus(count=0, limit=self.limit, reset_in=0)
        return RateLimitStatus(count=int(count), limit=self.limit, reset_in=int(ttl))

    def reset(self) -> None:
        for redis_key in self.client.scan_iter(f"{self.key_prefix}:*"):
            self.client.delete(redis_key)
