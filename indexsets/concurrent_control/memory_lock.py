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
import threading
import time
import uuid
from typing import Dict, Optional

from indexsets.concurrent_control.base import BaseLock

# Process-wide holders by key. Guarded by a thread lock because jobs release
# their slot from executor threads.
_holders: Dict[str, str] = {}
_holders_guard = threading.Lock()


class MemoryLock(BaseLock):
    """In-process lock keyed by name, for single-node deployments and tests"""

    def __init__(self, key: str, retry_delay: float = 0.01):
        if not key:
            raise ValueError("Memory lock key is required")
        super().__init__(key)
        self._retry_delay = retry_delay

    def _try_acquire(self, lock_value: str) -> bool:
        with _holders_guard:
            if self._key in _holders:
                return False
            _holders[self._key] = lock_value
            return True

    async def acquire(self, timeout: Optional[float] = None) -> bool:
        if self.is_locked():
            return True

        lock_value = str(uuid.uuid4())
        deadline = time.monotonic() + timeout if timeout is not None else None
        while not self._try_acquire(lock_value):
            if deadline is not None and time.monotonic() >= deadline:
                return False
            await asyncio.sleep(self._retry_delay)
        self._lock_value = lock_value
        return True

    def release_sync(self) -> bool:
        if not self.is_locked():
            return False
        try:
            with _holders_guard:
                if _holders.get(self._key) != self._lock_value:
                    return False
                del _holders[self._key]
                return True
        finally:
            self._lock_value = None

    async def release(self) -> bool:
        return self.release_sync()
