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

from abc import ABC, abstractmethod
from typing import Optional


class BaseLock(ABC):
    """Common interface of the lock implementations.

    A lock is held by whoever knows its value. ``adopt`` builds a lock object
    around a value obtained elsewhere (typically by another process) so the
    current owner can release it.
    """

    def __init__(self, key: str):
        self._key = key
        self._lock_value: Optional[str] = None

    @property
    def key(self) -> str:
        return self._key

    @property
    def lock_value(self) -> Optional[str]:
        return self._lock_value

    @classmethod
    def adopt(cls, key: str, lock_value: str, **kwargs) -> "BaseLock":
        lock = cls(key=key, **kwargs)
        lock._lock_value = lock_value
        return lock

    def is_locked(self) -> bool:
        return self._lock_value is not None

    @abstractmethod
    async def acquire(self, timeout: Optional[float] = None) -> bool:
        """Try to take the lock; ``timeout=0`` makes a single attempt"""

    @abstractmethod
    async def release(self) -> bool:
        """Release the lock if held by this value"""

    async def __aenter__(self):
        if not await self.acquire():
            raise TimeoutError(f"Failed to acquire lock {self._key}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.release()
        return False
