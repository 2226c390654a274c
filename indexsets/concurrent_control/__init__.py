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

from indexsets.concurrent_control.base import BaseLock
from indexsets.concurrent_control.memory_lock import MemoryLock
from indexsets.concurrent_control.redis_lock import RedisLock

_LOCK_TYPES = {
    "redis": RedisLock,
    "memory": MemoryLock,
}


def create_lock(lock_type: str = "redis", **kwargs) -> BaseLock:
    """Create a lock of the given type; kwargs go to its constructor"""
    lock_cls = _LOCK_TYPES.get(lock_type)
    if lock_cls is None:
        raise ValueError(f"Unsupported lock type: {lock_type}")
    return lock_cls(**kwargs)


__all__ = [
    "BaseLock",
    "MemoryLock",
    "RedisLock",
    "create_lock",
]
