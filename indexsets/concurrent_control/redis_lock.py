# Copyright 2025 ApeCloud, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import asyncio
import logging
import time
import uuid
from typing import Optional

import redis.asyncio as redis

from indexsets.concurrent_control.base import BaseLock

logger = logging.getLogger(__name__)

# Delete the key only if it still holds our value
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class RedisLock(BaseLock):
    """Distributed lock on a single Redis key (SET NX EX).

    The key expires after ``expire_time`` seconds so a crashed holder cannot
    keep it forever. Release runs a compare-and-delete Lua script so a holder
    never deletes a lock that has since been taken by someone else.
    """

    def __init__(
        self,
        key: str,
        redis_url: str = "redis://localhost:6379",
        expire_time: int = 30,
        retry_times: int = 3,
        retry_delay: float = 0.1,
    ):
        if not key:
            raise ValueError("Redis lock key is required")
        super().__init__(key)
        self._redis_url = redis_url
        self._expire_time = expire_time
        self._retry_times = retry_times
        self._retry_delay = retry_delay
        self._redis_client = None
        self._release_sha: Optional[str] = None

    async def _get_client(self):
        if self._redis_client is None:
            client = redis.from_url(self._redis_url, decode_responses=True)
            try:
                await client.ping()
            except Exception as e:
                raise ConnectionError(f"Cannot connect to Redis at {self._redis_url}: {e}") from e
            try:
                self._release_sha = await client.script_load(RELEASE_SCRIPT)
            except Exception as e:
                logger.warning(f"Failed to load release script, falling back to EVAL: {e}")
                self._release_sha = None
            self._redis_client = client
        return self._redis_client

    async def acquire(self, timeout: Optional[float] = None) -> bool:
        """Acquire the lock.

        Args:
            timeout: Seconds to keep trying. ``None`` retries ``retry_times``
                times instead; ``0`` makes exactly one attempt.

        Returns:
            True if the lock is held by this instance afterwards.
        """
        if self.is_locked():
            return True

        client = await self._get_client()
        lock_value = str(uuid.uuid4())
        deadline = time.monotonic() + timeout if timeout is not None else None
        attempts = 0

        while True:
            attempts += 1
            try:
                acquired = await client.set(self._key, lock_value, nx=True, ex=self._expire_time)
            except Exception as e:
                logger.warning(f"Error acquiring lock {self._key}: {e}")
                acquired = False

            if acquired:
                self._lock_value = lock_value
                logger.debug(f"Acquired lock {self._key} after {attempts} attempt(s)")
                return True

            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                await asyncio.sleep(min(self._retry_delay, remaining))
            else:
                if attempts > self._retry_times:
                    return False
                await asyncio.sleep(self._retry_delay)

    async def release(self) -> bool:
        if not self.is_locked():
            return False

        lock_value = self._lock_value
        try:
            client = await self._get_client()
            if self._release_sha:
                result = await client.evalsha(self._release_sha, 1, self._key, lock_value)
            else:
                result = await client.eval(RELEASE_SCRIPT, 1, self._key, lock_value)
            if not result:
                logger.warning(f"Lock {self._key} was no longer held by {lock_value} at release")
            return bool(result)
        except Exception as e:
            logger.error(f"Failed to release lock {self._key}: {e}")
            return False
        finally:
            self._lock_value = None

    async def disconnect(self):
        """Close the connection, leaving the lock (if held) to expire or be released by its value"""
        if self._redis_client is not None:
            await self._redis_client.close()
            self._redis_client = None
