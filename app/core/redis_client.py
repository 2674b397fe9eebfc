"""Shared Redis connection, listing cache and login throttle."""

import json
from typing import Any, cast

import redis
import structlog

from app.config import settings

logger = structlog.get_logger()

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return the process-wide Redis client, connecting lazily on first use."""
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """Ping Redis; False when it cannot be reached."""
    try:
        get_redis_client().ping()
    except redis.RedisError as e:
        logger.warning("redis_unreachable", error=str(e))
        return False
    return True


def close_redis_connection() -> None:
    """Drop the shared client so the next call reconnects."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class RateLimiter:
    """
    Fixed-window attempt counter.

    The first attempt in a window starts a counter that expires with the
    window. Redis errors let the attempt through.
    """

    def __init__(self, redis_client: redis.Redis, namespace: str = "traffboard:ratelimit"):
        """Initialize rate limiter with Redis client."""
        self.redis = redis_client
        self.namespace = namespace

    def check_rate_limit(self, key: str, limit: int, window: int) -> bool:
        """
        Count one attempt for ``key``.

        Args:
            key: Bucket name, e.g. ``login:203.0.113.9``
            limit: Attempts allowed per window
            window: Window length in seconds

        Returns:
            True while the attempt is within the limit
        """
        bucket = f"{self.namespace}:{key}"
        try:
            count = cast(int, self.redis.incr(bucket))
            if count == 1:
                self.redis.expire(bucket, window)
        except redis.RedisError as e:
            logger.warning("rate_limit_unavailable", key=key, error=str(e))
            return True
        return count <= limit


class CacheManager:
    """
    Redis-backed cache.

    Every operation degrades to a miss or a no-op when Redis is unreachable,
    so callers always fall back to the database.
    """

    def __init__(self, redis_client: redis.Redis, namespace: str = "traffboard"):
        """Initialize cache manager with Redis client."""
        self.redis = redis_client
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get_json(self, key: str) -> Any | None:
        """Get JSON value from cache and deserialize."""
        try:
            value = cast(str | None, self.redis.get(self._key(key)))
            if value:
                return json.loads(value)
            return None
        except Exception:
            return None

    def set_json(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
    ) -> bool:
        """
        Serialize and set JSON value in cache.

        Args:
            key: Cache key
            value: Value to serialize and cache
            ttl: Time to live in seconds

        Returns:
            True if successful, False otherwise
        """
        try:
            json_value = json.dumps(value, default=str)
            if ttl:
                self.redis.setex(self._key(key), ttl, json_value)
            else:
                self.redis.set(self._key(key), json_value)
            return True
        except Exception:
            return False

    def delete(self, key: str) -> bool:
        """Delete key from cache."""
        try:
            self.redis.delete(self._key(key))
            return True
        except Exception:
            return False

    def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching a pattern.

        Args:
            pattern: Key pattern relative to the namespace (e.g. 'dimensions:*')

        Returns:
            Number of keys deleted
        """
        try:
            keys = list(self.redis.scan_iter(match=self._key(pattern)))
            if keys:
                return cast(int, self.redis.delete(*keys))
            return 0
        except Exception:
            return 0
