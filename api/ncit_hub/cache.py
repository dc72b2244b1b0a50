"""Redis client and small cache helpers."""

from __future__ import annotations

import json
import logging
from typing import Any

import redis

from . import settings

logger = logging.getLogger(__name__)

# Redis connection
_redis_client: redis.Redis | None = None


def get_redis() -> redis.Redis | None:
    """
    Get or create the Redis client.

    Returns None when REDIS_URL is not configured or the server is unreachable.
    """
    global _redis_client

    if not settings.REDIS_URL:
        return None

    if _redis_client is not None:
        return _redis_client

    try:
        client = redis.from_url(settings.REDIS_URL, decode_responses=True)
        client.ping()
        logger.info("Redis connected successfully")
        _redis_client = client
        return _redis_client
    except redis.RedisError as e:
        logger.warning(f"Redis unavailable: {e}. Continuing without it.")
        return None


def cache_get(key: str) -> Any | None:
    """Retrieve a cached JSON value by key."""
    client = get_redis()
    if not client:
        return None

    try:
        value = client.get(key)
        if value is None:
            return None
        return json.loads(value)
    except (redis.RedisError, json.JSONDecodeError) as e:
        logger.warning(f"Cache get error for key '{key}': {e}")
        return None


def cache_set(key: str, value: Any, ttl: int = 300) -> bool:
    client = get_redis()
    if not client:
        return False

    try:
        client.setex(key, ttl, json.dumps(value))
        return True
    except redis.RedisError as e:
        logger.warning(f"Cache set error for key '{key}': {e}")
        return False


def cache_delete(key: str) -> bool:
    client = get_redis()
    if not client:
        return False

    try:
        return bool(client.delete(key))
    except redis.RedisError as e:
        logger.warning(f"Cache delete error for key '{key}': {e}")
        return False
