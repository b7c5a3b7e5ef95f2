"""
Unit tests for Redis cache error handling scenarios.

Tests various error conditions in the cache helpers:
- Connection failures
- Serialization errors
- Data corruption
- The CACHE_ENABLED switch
"""

import json

import pytest
from unittest.mock import patch
from redis.exceptions import (
    ConnectionError,
    TimeoutError,
    ResponseError,
    RedisError
)

from georegistry.core.cache import (
    cache_get,
    cache_set,
    cache_delete,
    check_redis_health,
    serialize_value,
    deserialize_value,
)
from georegistry.core.config import settings

# Test data
TEST_KEY = "user:7b0a4c4e-8f7e-4a53-9c55-0c2f1c6f3a10"
TEST_VALUE = {"id": "7b0a4c4e-8f7e-4a53-9c55-0c2f1c6f3a10", "email": "a@example.com", "role": "user"}


@pytest.fixture
def cache_enabled(monkeypatch):
    monkeypatch.setattr(settings, "CACHE_ENABLED", True)


@pytest.fixture
def mock_redis(cache_enabled):
    """Fixture to provide a mock Redis client"""
    with patch("georegistry.core.cache.Redis") as mock:
        yield mock


@pytest.mark.parametrize("error", [
    ConnectionError("Connection refused"),
    TimeoutError("Operation timed out"),
    ResponseError("Invalid response"),
])
def test_cache_get_propagates_redis_errors(mock_redis, error):
    mock_redis.return_value.get.side_effect = error

    with pytest.raises(RedisError):
        cache_get(TEST_KEY)


def test_cache_get_hit(mock_redis):
    mock_redis.return_value.get.return_value = json.dumps(TEST_VALUE)

    assert cache_get(TEST_KEY) == TEST_VALUE
    mock_redis.return_value.get.assert_called_once_with(TEST_KEY)


def test_cache_get_miss(mock_redis):
    mock_redis.return_value.get.return_value = None

    assert cache_get(TEST_KEY) is None


def test_cache_get_corrupted_value(mock_redis):
    """Corrupted entries read as a miss"""
    mock_redis.return_value.get.return_value = "{'invalid': json}"

    assert cache_get(TEST_KEY) is None


def test_cache_set_uses_expiry(mock_redis):
    mock_redis.return_value.setex.return_value = True

    assert cache_set(TEST_KEY, TEST_VALUE, expire=60) is True
    mock_redis.return_value.setex.assert_called_once_with(TEST_KEY, 60, json.dumps(TEST_VALUE))


def test_cache_set_serialization_error(mock_redis):
    """Test cache set with unserializable data"""
    class UnserializableObject:
        pass

    assert cache_set(TEST_KEY, UnserializableObject()) is False
    mock_redis.return_value.setex.assert_not_called()


def test_cache_set_connection_error(mock_redis):
    mock_redis.return_value.setex.side_effect = ConnectionError("Connection refused")

    assert cache_set(TEST_KEY, TEST_VALUE) is False


def test_cache_delete_succeeds_for_missing_key(mock_redis):
    """A key that was never cached counts as invalidated"""
    mock_redis.return_value.delete.return_value = 0

    assert cache_delete(TEST_KEY) is True
    mock_redis.return_value.delete.assert_called_once_with(TEST_KEY)


def test_cache_delete_error(mock_redis):
    mock_redis.return_value.delete.side_effect = RedisError("Operation failed")

    assert cache_delete(TEST_KEY) is False


def test_health_check_failure(mock_redis):
    """Test Redis health check failure handling"""
    mock_redis.return_value.ping.side_effect = ConnectionError("Connection refused")

    assert check_redis_health() is False


def test_health_check_success(mock_redis):
    mock_redis.return_value.ping.return_value = True

    assert check_redis_health() is True


def test_disabled_cache_never_touches_redis():
    with patch("georegistry.core.cache.Redis") as mock:
        assert cache_get(TEST_KEY) is None
        assert cache_set(TEST_KEY, TEST_VALUE) is False
        assert cache_delete(TEST_KEY) is False
        assert check_redis_health() is False
    mock.assert_not_called()


def test_serialization_error():
    """Test handling of value serialization errors"""
    with pytest.raises(ValueError):
        serialize_value(object())


def test_deserialization_error():
    """Test handling of value deserialization errors"""
    with pytest.raises(ValueError):
        deserialize_value("{'invalid': json}")
