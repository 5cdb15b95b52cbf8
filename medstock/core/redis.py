# medstock/core/redis.py
"""
Optional Redis connection for the dashboard cache and the redis session backend.

Without REDIS_URL, or when the server cannot be reached at startup, every
helper below is a no-op and callers fall back to the database.
"""

import logging
from functools import lru_cache
from typing import Callable, Optional, TypeVar

import redis

from medstock.core.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

KEY_PREFIX = "medstock:"


@lru_cache
def get_redis_client() -> Optional[redis.Redis]:
    """Connected client, or None when Redis is disabled or unreachable."""
    settings = get_settings()

    if not settings.redis_url:
        logger.info("REDIS_URL not set. Dashboard caching is disabled.")
        return None

    client = redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=2,
        socket_timeout=2,
    )
    try:
        client.ping()
    except redis.RedisError as e:
        logger.warning("Redis at %s unreachable (%s). Continuing without it.", settings.redis_url, e)
        return None

    logger.info("Connected to Redis.")
    return client


def _cache_call(action: str, key: str, call: Callable[[redis.Redis, str], T], default: T) -> T:
    client = get_redis_client()
    if client is None:
        return default
    try:
        return call(client, KEY_PREFIX + key)
    except redis.RedisError as e:
        logger.warning("Redis %s failed for '%s': %s", action, key, e)
        return default


def cache_get(key: str) -> Optional[str]:
    return _cache_call("GET", key, lambda c, k: c.get(k), None)


def cache_set(key: str, value: str, ttl: int = 60) -> bool:
    """Store value for ttl seconds. False if nothing was written."""
    return _cache_call("SETEX", key, lambda c, k: bool(c.setex(k, ttl, value)), False)


def cache_incr(key: str) -> Optional[int]:
    return _cache_call("INCR", key, lambda c, k: int(c.incr(k)), None)
