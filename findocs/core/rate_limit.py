import logging
import time
from threading import Lock
from typing import Dict, Optional, Tuple

import redis.asyncio as redis_async
from redis.exceptions import RedisError

from findocs.core.config import settings

logger = logging.getLogger(__name__)


class RateLimitStore:
    """Fixed-window request counters keyed by client address and bucket.

    Uses Redis when REDIS_URL is configured so limits hold across instances;
    otherwise counts in process memory, which is enough for a single
    instance and for development.
    """

    def __init__(self, redis_url: Optional[str] = None):
        self._use_redis = bool(redis_url)
        if self._use_redis:
            self._client = redis_async.from_url(redis_url)
        else:
            # key -> (count, window_ends_at)
            self._store: Dict[str, Tuple[int, float]] = {}
            self._lock = Lock()

    async def hit(self, key: str, limit: int, window_seconds: int) -> Tuple[bool, int]:
        """Count one request. Returns (allowed, seconds until the window resets)."""
        if self._use_redis:
            try:
                return await self._hit_redis(key, limit, window_seconds)
            except (RedisError, OSError) as e:
                # Boundary protection only; an unreachable Redis must not take the API down
                logger.warning(f"Redis rate limit check failed, allowing request: {e}")
                return True, 0

        now = time.monotonic()
        with self._lock:
            count, window_ends_at = self._store.get(key, (0, now + window_seconds))
            if window_ends_at <= now:
                count, window_ends_at = 0, now + window_seconds
            count += 1
            self._store[key] = (count, window_ends_at)
            self._purge_expired(now)
        return count <= limit, max(int(window_ends_at - now), 1)

    async def _hit_redis(self, key: str, limit: int, window_seconds: int) -> Tuple[bool, int]:
        redis_key = f"findocs:rate:{key}"
        # INCR and EXPIRE go out as one MULTI block so a counter never outlives its window
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.incr(redis_key)
            pipe.expire(redis_key, window_seconds, nx=True)
            pipe.ttl(redis_key)
            count, _, ttl = await pipe.execute()
        return count <= limit, max(int(ttl), 1)

    def _purge_expired(self, now: float) -> None:
        if len(self._store) < 1024:
            return
        expired = [k for k, (_, ends) in self._store.items() if ends <= now]
        for k in expired:
            del self._store[k]

    def reset(self) -> None:
        if self._use_redis:
            return
        with self._lock:
            self._store.clear()


rate_limit_store = RateLimitStore(settings.REDIS_URL or None)
