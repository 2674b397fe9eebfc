"""Tests for the Redis cache manager and login throttle."""

from unittest.mock import MagicMock

import redis

from app.config import settings
from app.core.redis_client import CacheManager, RateLimiter
from app.dependencies import get_cache_manager


def test_cache_manager_get_json():
    """Test CacheManager get_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    # Cache miss
    mock_redis.get.return_value = None
    result = cache_manager.get_json("dimensions:buyers:active")
    assert result is None
    mock_redis.get.assert_called_once_with("traffboard:dimensions:buyers:active")

    # Cache hit
    mock_redis.reset_mock()
    mock_redis.get.return_value = '[{"name": "Acme Leads", "id": 1}]'
    result = cache_manager.get_json("dimensions:buyers:active")
    assert result == [{"name": "Acme Leads", "id": 1}]


def test_cache_manager_set_json():
    """Test CacheManager set_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis, namespace="tb")

    # Without TTL
    result = cache_manager.set_json("key", {"name": "Search"})
    assert result is True
    mock_redis.set.assert_called_once_with("tb:key", '{"name": "Search"}')

    # With TTL
    mock_redis.reset_mock()
    result = cache_manager.set_json("key", {"name": "Search"}, ttl=300)
    assert result is True
    mock_redis.setex.assert_called_once_with("tb:key", 300, '{"name": "Search"}')


def test_cache_manager_delete():
    """Test CacheManager delete method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.delete("key") is True
    mock_redis.delete.assert_called_once_with("traffboard:key")


def test_cache_manager_delete_pattern():
    """Test CacheManager delete_pattern method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    mock_redis.scan_iter.return_value = iter(
        [
            "traffboard:dimensions:buyers:active",
            "traffboard:dimensions:funnels:active",
        ]
    )
    mock_redis.delete.return_value = 2

    result = cache_manager.delete_pattern("dimensions:*")

    mock_redis.scan_iter.assert_called_once_with(match="traffboard:dimensions:*")
    mock_redis.delete.assert_called_once_with(
        "traffboard:dimensions:buyers:active",
        "traffboard:dimensions:funnels:active",
    )
    assert result == 2


def test_cache_manager_delete_pattern_no_keys():
    """Nothing matched means nothing deleted."""
    mock_redis = MagicMock()
    mock_redis.scan_iter.return_value = iter([])
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.delete_pattern("dimensions:*") == 0
    mock_redis.delete.assert_not_called()


def test_cache_manager_redis_down():
    """An unreachable Redis degrades to misses and no-ops."""
    mock_redis = MagicMock()
    mock_redis.get.side_effect = redis.ConnectionError("refused")
    mock_redis.set.side_effect = redis.ConnectionError("refused")
    mock_redis.scan_iter.side_effect = redis.ConnectionError("refused")
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.get_json("key") is None
    assert cache_manager.set_json("key", [1, 2]) is False
    assert cache_manager.delete_pattern("*") == 0


def test_rate_limiter_counts_attempts():
    """Attempts up to the limit pass; the window is set on the first one."""
    mock_redis = MagicMock()
    limiter = RateLimiter(redis_client=mock_redis)

    mock_redis.incr.return_value = 1
    assert limiter.check_rate_limit("login:203.0.113.9", limit=5, window=900) is True
    mock_redis.incr.assert_called_once_with("traffboard:ratelimit:login:203.0.113.9")
    mock_redis.expire.assert_called_once_with("traffboard:ratelimit:login:203.0.113.9", 900)

    mock_redis.reset_mock()
    mock_redis.incr.return_value = 5
    assert limiter.check_rate_limit("login:203.0.113.9", limit=5, window=900) is True
    mock_redis.expire.assert_not_called()

    mock_redis.incr.return_value = 6
    assert limiter.check_rate_limit("login:203.0.113.9", limit=5, window=900) is False


def test_rate_limiter_redis_down():
    """Without Redis, logins are not throttled."""
    mock_redis = MagicMock()
    mock_redis.incr.side_effect = redis.ConnectionError("refused")
    limiter = RateLimiter(redis_client=mock_redis)

    assert limiter.check_rate_limit("login:203.0.113.9", limit=5, window=900) is True


def test_cache_manager_off_with_zero_ttl(monkeypatch):
    """A zero TTL switches dimension caching off entirely."""
    monkeypatch.setattr(settings, "dimension_cache_ttl", 0)
    assert get_cache_manager() is None

    monkeypatch.setattr(settings, "dimension_cache_ttl", 300)
    assert isinstance(get_cache_manager(), CacheManager)
