"""
Caching utility module for the Show Notes Generator.

Values are JSON serialized. Redis is used when configured, otherwise an
in-process dictionary with expiry times.
"""

import json
import time
import functools
from typing import Any, Optional

import redis

from shownotes.utils.logger import logging

# Global Redis client
_redis_client = None

# In-memory cache used when Redis is not configured or unreachable
_memory_cache = {}


def setup_redis_cache(redis_url: str) -> bool:
    """
    Set up Redis caching.

    Args:
        redis_url: Redis connection URL

    Returns:
        True if successful, False otherwise
    """
    global _redis_client

    try:
        _redis_client = redis.from_url(redis_url)
        _redis_client.ping()
        logging.info("Redis cache configured successfully")
        return True
    except redis.RedisError as e:
        logging.error(f"Error configuring Redis: {e}")
        _redis_client = None
        return False


def is_redis_available() -> bool:
    """Check if Redis is available for caching."""
    return _redis_client is not None


def cache_set(key: str, value: Any, expires: int = 3600) -> bool:
    """
    Set a value in the cache.

    Args:
        key: Cache key
        value: Value to cache
        expires: Expiration time in seconds (default: 1 hour)

    Returns:
        True if successful, False otherwise
    """
    try:
        serialized = json.dumps(value)
    except (TypeError, ValueError):
        logging.error(f"Error serializing value for key {key}")
        return False

    if is_redis_available():
        try:
            return bool(_redis_client.setex(key, expires, serialized))
        except redis.RedisError as e:
            logging.error(f"Redis error in cache_set: {e}")

    _memory_cache[key] = {
        "value": serialized,
        "expires": time.time() + expires
    }
    return True


def cache_get(key: str) -> Optional[Any]:
    """
    Get a value from the cache.

    Args:
        key: Cache key

    Returns:
        Cached value or None if not found or expired
    """
    if is_redis_available():
        try:
            value = _redis_client.get(key)
            if value:
                return json.loads(value)
        except redis.RedisError as e:
            logging.error(f"Redis error in cache_get: {e}")

    if key in _memory_cache:
        cache_entry = _memory_cache[key]

        if cache_entry["expires"] > time.time():
            return json.loads(cache_entry["value"])
        else:
            del _memory_cache[key]

    return None


def cache_delete(key: str) -> bool:
    """
    Delete a value from the cache.

    Args:
        key: Cache key

    Returns:
        True if something was deleted, False otherwise
    """
    redis_result = False
    if is_redis_available():
        try:
            redis_result = bool(_redis_client.delete(key))
        except redis.RedisError as e:
            logging.error(f"Redis error in cache_delete: {e}")

    memory_result = False
    if key in _memory_cache:
        del _memory_cache[key]
        memory_result = True

    return redis_result or memory_result


def cached(expires: int = 3600, prefix: str = "cache"):
    """
    Decorator for caching function results.

    Only str/int/float/bool arguments take part in the key. None results
    are not cached.

    Args:
        expires: Cache expiration time in seconds
        prefix: Prefix for cache keys

    Returns:
        Decorated function
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            key_parts = [prefix, func.__name__]

            for arg in args:
                if isinstance(arg, (str, int, float, bool)):
                    key_parts.append(str(arg))

            for k, v in sorted(kwargs.items()):
                if isinstance(v, (str, int, float, bool)):
                    key_parts.append(f"{k}={v}")

            cache_key = ":".join(key_parts)

            cached_result = cache_get(cache_key)
            if cached_result is not None:
                logging.debug(f"Cache hit for {cache_key}")
                return cached_result

            result = func(*args, **kwargs)
            if result is not None:
                cache_set(cache_key, result, expires)

            return result
        return wrapper
    return decorator


def clear_memory_cache():
    """Clear the in-memory cache."""
    global _memory_cache
    _memory_cache = {}
