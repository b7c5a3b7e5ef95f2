"""
Redis cache configuration and utilities.

This module provides a Redis connection pool and cache utilities used to keep
resolved user identities close to the session check. Every helper is a no-op
when CACHE_ENABLED is off.
"""

from typing import Any, Optional
import json
import logging
from contextlib import contextmanager
from redis import Redis, ConnectionPool, ConnectionError, RedisError, TimeoutError
from redis.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ResponseError

from .config import settings

# Configure logging
logger = logging.getLogger(__name__)

# Redis connection retry strategy with exponential backoff
retry_strategy = Retry(
    ExponentialBackoff(
        cap=2,  # Maximum backoff time in seconds
        base=0.1  # Base multiplier for backoff
    ),
    retries=2,
    supported_errors=(
        ConnectionError,
        TimeoutError,
        ResponseError
    )
)

# Create Redis connection pool; connections are opened lazily
redis_pool = ConnectionPool(
    host=settings.REDIS_HOST,
    port=settings.REDIS_PORT,
    db=settings.REDIS_DB,
    decode_responses=True,
    max_connections=10,
    socket_timeout=2,
    socket_connect_timeout=2,
    retry_on_timeout=True,
    health_check_interval=30
)


def check_redis_health() -> bool:
    """
    Check Redis connection health.

    Returns:
        bool: True if Redis is healthy, False otherwise
    """
    if not settings.CACHE_ENABLED:
        return False
    try:
        with get_redis_client() as client:
            return bool(client.ping())
    except RedisError as e:
        logger.error(f"Redis health check failed: {e}")
        return False


@contextmanager
def get_redis_client() -> Redis:
    """
    Get Redis client instance with automatic connection management.

    Yields:
        Redis: Redis client instance

    Raises:
        RedisError: If connection fails
    """
    client = Redis(
        connection_pool=redis_pool,
        retry=retry_strategy
    )
    try:
        yield client
    except ConnectionError as e:
        logger.error(f"Redis connection error: {e}")
        raise
    except TimeoutError as e:
        logger.error(f"Redis timeout error: {e}")
        raise
    finally:
        client.close()


def serialize_value(value: Any) -> str:
    """
    Serialize value to JSON string.

    Raises:
        ValueError: If value cannot be serialized
    """
    try:
        return json.dumps(value)
    except (TypeError, ValueError) as e:
        logger.error(f"Failed to serialize value: {e}")
        raise ValueError(f"Could not serialize value: {e}")


def deserialize_value(value: str) -> Any:
    """
    Deserialize JSON string to value.

    Raises:
        ValueError: If value cannot be deserialized
    """
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError) as e:
        logger.error(f"Failed to deserialize value: {e}")
        raise ValueError(f"Could not deserialize value: {e}")


# PUBLIC_INTERFACE
def cache_get(key: str) -> Optional[Any]:
    """
    Get value from cache.

    Args:
        key: Cache key

    Returns:
        Any: Cached value or None if not found or unreadable

    Raises:
        RedisError: If Redis operation fails
    """
    if not settings.CACHE_ENABLED:
        return None
    with get_redis_client() as client:
        value = client.get(key)
        if not value:
            return None
        try:
            return deserialize_value(value)
        except ValueError:
            return None


# PUBLIC_INTERFACE
def cache_set(key: str, value: Any, expire: int = 3600) -> bool:
    """
    Set value in cache.

    Args:
        key: Cache key
        value: Value to cache
        expire: Expiration time in seconds (default: 1 hour)

    Returns:
        bool: True if successful, False otherwise
    """
    if not settings.CACHE_ENABLED:
        return False
    try:
        with get_redis_client() as client:
            serialized = serialize_value(value)
            return bool(client.setex(key, expire, serialized))
    except (RedisError, ValueError) as e:
        logger.error(f"Failed to set cache key {key}: {e}")
        return False


# PUBLIC_INTERFACE
def cache_delete(key: str) -> bool:
    """
    Delete value from cache.

    Args:
        key: Cache key

    Returns:
        bool: True once the key is gone (deleted or never cached), False on error
    """
    if not settings.CACHE_ENABLED:
        return False
    try:
        with get_redis_client() as client:
            client.delete(key)
            return True
    except RedisError as e:
        logger.error(f"Failed to delete cache key {key}: {e}")
        return False
