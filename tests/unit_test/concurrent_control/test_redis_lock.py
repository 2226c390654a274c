"""
Unit tests for RedisLock.

The lock guards the job exclusivity slots, so the tests focus on what the
scheduler relies on: single attempt acquisition, safe compare-and-delete
release, adoption of a lock value by another process and connection
handling. Redis is mocked throughout.
"""

from unittest.mock import AsyncMock, patch

import pytest

from indexsets.concurrent_control import RedisLock, create_lock


def make_client(set_result=True, release_result=1, sha="sha123"):
    mock_client = AsyncMock()
    mock_client.ping.return_value = True
    mock_client.script_load.return_value = sha
    mock_client.set.return_value = set_result
    mock_client.evalsha.return_value = release_result
    mock_client.eval.return_value = release_result
    return mock_client


class TestRedisLockInitialization:
    def test_redis_lock_creation(self):
        lock = RedisLock(key="test_key")
        assert lock.key == "test_key"
        assert lock._redis_url == "redis://localhost:6379"
        assert lock._expire_time == 30
        assert lock._retry_times == 3
        assert lock._retry_delay == 0.1
        assert lock._redis_client is None
        assert lock.lock_value is None

    def test_redis_lock_empty_key(self):
        with pytest.raises(ValueError, match="Redis lock key is required"):
            RedisLock(key="")

        with pytest.raises(ValueError, match="Redis lock key is required"):
            RedisLock(key=None)

    def test_redis_lock_factory_creation(self):
        lock = create_lock("redis", key="factory_test", expire_time=60)
        assert isinstance(lock, RedisLock)
        assert lock._expire_time == 60

    def test_factory_rejects_unknown_type(self):
        with pytest.raises(ValueError, match="Unsupported lock type"):
            create_lock("zookeeper", key="x")


class TestRedisLockBasicOperations:
    @patch("indexsets.concurrent_control.redis_lock.redis")
    @pytest.mark.asyncio
    async def test_successful_acquire_and_release(self, mock_redis_module):
        mock_client = make_client()
        mock_redis_module.from_url.return_value = mock_client

        lock = RedisLock(key="test_acquire_release")

        assert not lock.is_locked()
        assert await lock.acquire() is True
        assert lock.is_locked()
        assert len(lock.lock_value) == 36  # UUID length

        call_args = mock_client.set.call_args
        assert call_args[0][0] == "test_acquire_release"
        assert call_args[1]["nx"] is True
        assert call_args[1]["ex"] == 30

        lock_value = lock.lock_value
        assert await lock.release() is True
        assert not lock.is_locked()
        mock_client.evalsha.assert_called_once_with("sha123", 1, "test_acquire_release", lock_value)

    @patch("indexsets.concurrent_control.redis_lock.redis")
    @pytest.mark.asyncio
    async def test_context_manager_releases_on_exception(self, mock_redis_module):
        mock_redis_module.from_url.return_value = make_client()

        lock = RedisLock(key="test_exception")

        with pytest.raises(ValueError):
            async with lock:
                assert lock.is_locked()
                raise ValueError("Test exception")

        assert not lock.is_locked()

    @patch("indexsets.concurrent_control.redis_lock.redis")
    @pytest.mark.asyncio
    async def test_acquire_already_held_lock(self, mock_redis_module):
        mock_client = make_client()
        mock_redis_module.from_url.return_value = mock_client

        lock = RedisLock(key="test_already_held")
        assert await lock.acquire() is True
        assert await lock.acquire() is True
        assert mock_client.set.call_count == 1


class TestRedisLockTimeoutAndRetry:
    @patch("indexsets.concurrent_control.redis_lock.redis")
    @pytest.mark.asyncio
    async def test_zero_timeout_makes_single_attempt(self, mock_redis_module):
        mock_client = make_client(set_result=None)
        mock_redis_module.from_url.return_value = mock_client

        lock = RedisLock(key="test_single_attempt", retry_delay=0.01)
        assert await lock.acquire(timeout=0) is False
        assert mock_client.set.call_count == 1
        assert not lock.is_locked()

    @patch("indexsets.concurrent_control.redis_lock.redis")
    @pytest.mark.asyncio
    async def test_acquire_retry_mechanism(self, mock_redis_module):
        mock_client = make_client()
        mock_client.set.side_effect = [None, None, True]
        mock_redis_module.from_url.return_value = mock_client

        lock = RedisLock(key="test_retry", retry_times=3, retry_delay=0.01)
        assert await lock.acquire() is True
        assert mock_client.set.call_count == 3

    @patch("indexsets.concurrent_control.redis_lock.redis")
    @pytest.mark.asyncio
    async def test_acquire_retry_exhaustion(self, mock_redis_module):
        mock_client = make_client(set_result=None)
        mock_redis_module.from_url.return_value = mock_client

        lock = RedisLock(key="test_exhaustion", retry_times=2, retry_delay=0.01)
        assert await lock.acquire() is False
        # One initial attempt plus the retries
        assert mock_client.set.call_count == 3

    @patch("indexsets.concurrent_control.redis_lock.redis")
    @pytest.mark.asyncio
    async def test_set_error_counts_as_failed_attempt(self, mock_redis_module):
        mock_client = make_client()
        mock_client.set.side_effect = [Exception("Redis busy"), True]
        mock_redis_module.from_url.return_value = mock_client

        lock = RedisLock(key="test_set_error", retry_delay=0.01)
        assert await lock.acquire() is True
        assert mock_client.set.call_count == 2


class TestRedisLockRelease:
    @patch("indexsets.concurrent_control.redis_lock.redis")
    @pytest.mark.asyncio
    async def test_lua_script_fallback(self, mock_redis_module):
        mock_client = make_client()
        mock_client.script_load.side_effect = Exception("NOSCRIPT")
        mock_redis_module.from_url.return_value = mock_client

        lock = RedisLock(key="test_fallback")
        await lock.acquire()
        assert await lock.release() is True
        mock_client.eval.assert_called_once()
        mock_client.evalsha.assert_not_called()

    @patch("indexsets.concurrent_control.redis_lock.redis")
    @pytest.mark.asyncio
    async def test_release_lock_taken_over(self, mock_redis_module):
        mock_redis_module.from_url.return_value = make_client(release_result=0)

        lock = RedisLock(key="test_expired")
        await lock.acquire()
        assert await lock.release() is False
        assert not lock.is_locked()

    @pytest.mark.asyncio
    async def test_release_without_acquire(self):
        lock = RedisLock(key="test_not_held")
        assert await lock.release() is False

    @patch("indexsets.concurrent_control.redis_lock.redis")
    @pytest.mark.asyncio
    async def test_release_failure_cleanup(self, mock_redis_module):
        mock_client = make_client()
        mock_client.evalsha.side_effect = Exception("Connection reset")
        mock_redis_module.from_url.return_value = mock_client

        lock = RedisLock(key="test_release_failure")
        await lock.acquire()
        assert await lock.release() is False
        assert not lock.is_locked()

    @patch("indexsets.concurrent_control.redis_lock.redis")
    @pytest.mark.asyncio
    async def test_adopted_lock_releases_foreign_value(self, mock_redis_module):
        mock_client = make_client()
        mock_redis_module.from_url.return_value = mock_client

        lock = RedisLock.adopt("slot:cleanup", "value-from-submitter", expire_time=60)
        assert lock.is_locked()
        assert lock._expire_time == 60

        assert await lock.release() is True
        mock_client.evalsha.assert_called_once_with("sha123", 1, "slot:cleanup", "value-from-submitter")


class TestRedisLockConnection:
    @patch("indexsets.concurrent_control.redis_lock.redis")
    @pytest.mark.asyncio
    async def test_redis_connection_failure(self, mock_redis_module):
        mock_client = make_client()
        mock_client.ping.side_effect = Exception("Connection refused")
        mock_redis_module.from_url.return_value = mock_client

        lock = RedisLock(key="test_connection_failure", redis_url="redis://nowhere:6379")
        with pytest.raises(ConnectionError, match="Cannot connect to Redis at redis://nowhere:6379"):
            await lock.acquire()
        assert not lock.is_locked()

    @patch("indexsets.concurrent_control.redis_lock.redis")
    @pytest.mark.asyncio
    async def test_disconnect_keeps_lock(self, mock_redis_module):
        mock_client = make_client()
        mock_redis_module.from_url.return_value = mock_client

        lock = RedisLock(key="test_disconnect")
        await lock.acquire()
        await lock.disconnect()

        mock_client.close.assert_called_once()
        mock_client.evalsha.assert_not_called()
        assert lock.is_locked()
        assert lock._redis_client is None
