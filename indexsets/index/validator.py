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
from typing import Optional, Tuple

from indexsets.db.models import IndexSetConfig
from indexsets.db.ops import AsyncDatabaseOps, async_db_ops

logger = logging.getLogger(__name__)

MIN_FIELD_TYPE_REFRESH_INTERVAL_MS = 1000


class IndexSetValidator:
    """Checks a candidate config against the other stored index sets.

    Returns ``(valid, field, message)`` in the way ``validate`` helpers do
    elsewhere in the service layer; callers turn a failure into
    ``invalid_param(field, message)``.
    """

    def __init__(self, db_ops: AsyncDatabaseOps = None):
        self.db_ops = db_ops or async_db_ops

    async def validate(self, config: IndexSetConfig) -> Tuple[bool, Optional[str], Optional[str]]:
        if config.field_type_refresh_interval < MIN_FIELD_TYPE_REFRESH_INTERVAL_MS:
            return (
                False,
                "field_type_refresh_interval",
                f"Field type refresh interval must be at least {MIN_FIELD_TYPE_REFRESH_INTERVAL_MS} ms",
            )

        if config.rotation_strategy and not config.rotation_strategy_class:
            return False, "rotation_strategy_class", "Rotation strategy class is required with a rotation strategy"
        if config.retention_strategy and not config.retention_strategy_class:
            return False, "retention_strategy_class", "Retention strategy class is required with a retention strategy"

        # Index names are <prefix>_<n>, so overlapping prefixes would claim each other's indices
        for existing in await self.db_ops.query_index_sets():
            if existing.id == config.id:
                continue
            if config.index_prefix.startswith(existing.index_prefix) or existing.index_prefix.startswith(
                config.index_prefix
            ):
                logger.info(
                    f"Rejecting index prefix {config.index_prefix}, overlaps index set {existing.id} "
                    f"({existing.index_prefix})"
                )
                return (
                    False,
                    "index_prefix",
                    f"Index prefix <{config.index_prefix}> would conflict with existing index set prefix "
                    f"<{existing.index_prefix}>",
                )

        return True, None, None
