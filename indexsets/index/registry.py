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

import logging
import re
import time
from typing import Any, Dict, Optional

from indexsets.config import settings
from indexsets.db.models import IndexSetConfig
from indexsets.db.ops import AsyncDatabaseOps, async_db_ops

logger = logging.getLogger(__name__)


class IndexSet:
    """Live handle on one index set: its config plus storage addressing"""

    def __init__(self, config: IndexSetConfig):
        self._config = config
        self._managed_index_pattern = re.compile(rf"^{re.escape(config.index_prefix)}_\d+$")

    @property
    def config(self) -> IndexSetConfig:
        return self._config

    @property
    def id(self) -> str:
        return self._config.id

    @property
    def is_default(self) -> bool:
        return bool(self._config.is_default)

    @property
    def index_prefix(self) -> str:
        return self._config.index_prefix

    @property
    def index_wildcard(self) -> str:
        return f"{self._config.index_prefix}_*"

    def is_managed_index(self, index_name: str) -> bool:
        return bool(index_name) and self._managed_index_pattern.match(index_name) is not None

    def to_dict(self) -> Dict[str, Any]:
        return self._config.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IndexSet":
        return cls(IndexSetConfig.model_validate(data))

    def __repr__(self) -> str:
        return f"IndexSet(id={self.id!r}, prefix={self.index_prefix!r})"


class IndexSetRegistry:
    """Resolves index set handles from a periodically refreshed snapshot.

    The snapshot is reloaded when older than ``cache_ttl`` seconds or after
    ``invalidate()``. A set missing from the snapshot is treated as unknown
    even if a row for it has appeared in the store since the last reload.
    """

    def __init__(self, db_ops: AsyncDatabaseOps = None, cache_ttl: float = None):
        self.db_ops = db_ops or async_db_ops
        self._cache_ttl = settings.registry_cache_ttl if cache_ttl is None else cache_ttl
        self._snapshot: Optional[Dict[str, IndexSet]] = None
        self._loaded_at = 0.0

    def _is_stale(self) -> bool:
        return self._snapshot is None or time.monotonic() - self._loaded_at > self._cache_ttl

    async def _index_sets(self) -> Dict[str, IndexSet]:
        if self._is_stale():
            configs = await self.db_ops.query_index_sets()
            self._snapshot = {config.id: IndexSet(config) for config in configs}
            self._loaded_at = time.monotonic()
            logger.debug(f"Loaded {len(self._snapshot)} index sets into registry")
        return self._snapshot

    def invalidate(self):
        self._snapshot = None

    async def get(self, index_set_id: str) -> Optional[IndexSet]:
        return (await self._index_sets()).get(index_set_id)


index_set_registry = IndexSetRegistry()
