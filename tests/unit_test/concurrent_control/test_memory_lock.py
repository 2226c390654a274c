"""Unit tests for the in-process MemoryLock."""

import asyncio

import pytest

from indexsets.concurrent_control import MemoryLock, create_lock


class TestMemoryLock:
    @pytest.mark.asyncio
    async def test_second_holder_is_rejected(self):
        first = MemoryLock("test_memory_exclusive")
        second = MemoryLock("test_memory_exclusive")

        assert await first.acquire(timeout=0) is True
        assert await second.acquire(timeout=0) is False

        assert await first.release() is True
        assert await second.acquire(timeout=0) is True
        await second.release()

    @pytest.mark.asyncio
    async def test_different_keys_are_independent(self):
        a = create_lock("memory", key="test_memory_a")
        b = create_lock("memory", key="test_memory_b")

        assert await a.acquire(timeout=0)
        assert await b.acquire(timeout=0)
        await a.release()
        await b.release()

    @pytest.mark.asyncio
    async def test_waiting_acquire_gets_released_lock(self):
        holder = MemoryLock("test_memory_wait")
        waiter = MemoryLock("test_memory_wait", retry_delay=0.005)
        await holder.acquire()

        async def release_later():
            await asyncio.sleep(0.02)
            await holder.release()

        task = asyncio.create_task(release_later())
        assert await waiter.acquire(timeout=1) is True
        await task
        await waiter.release()

    @pytest.mark.asyncio
    async def test_stale_value_does_not_release(self):
        holder = MemoryLock("test_memory_stale")
        await holder.acquire()

        impostor = MemoryLock.adopt("test_memory_stale", "not-the-holder")
        assert impostor.release_sync() is False
        assert await MemoryLock("test_memory_stale").acquire(timeout=0) is False

        assert holder.release_sync() is True

    def test_empty_key(self):
        with pytest.raises(ValueError, match="Memory lock key is required"):
            MemoryLock("")
