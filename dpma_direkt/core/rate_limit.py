from collections import defaultdict
from functools import lru_cache
from time import time

import redis

from dpma_direkt.core.config import Settings, get_settings
from dpma_direkt.core.logging import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """Fixed-window counter in redis; falls back to a per-process sliding window."""

    def __init__(self, settings: Settings | None = None, *, client: redis.Redis | None = None) -> None:
        self.settings = settings or get_settings()
        self._memory_store: dict[str, list[float]] = defaultdict(list)
        self._redis = client
        if self._redis is None:
            try:
                self._redis = redis.from_url(
                    self.settings.redis_url,
                    decode_responses=True,
                    socket_connect_timeout=1,
                )
                self._redis.ping()
            except redis.RedisError as exc:
                logger.warning("redis unavailable, using in-memory rate limiting", extra={"extra": {"error": str(exc)}})
                self._redis = None

    def allow(self, key: str, limit: int, window_seconds: int) -> bool:
        if self._redis:
            current = self._redis.incr(key)
            if current == 1:
                self._redis.expire(key, window_seconds)
            return current <= limit

        now = time()
        bucket = [ts for ts in self._memory_store[key] if now - ts <= window_seconds]
        bucket.append(now)
        self._memory_store[key] = bucket
        return len(bucket) <= limit


@lru_cache(maxsize=1)
def get_rate_limiter() -> RateLimiter:
    return RateLimiter()
