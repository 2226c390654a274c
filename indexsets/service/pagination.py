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
from typing import List, Tuple

from indexsets.db.models import IndexSetConfig
from indexsets.db.ops import AsyncDatabaseOps, async_db_ops
from indexsets.exceptions import invalid_param
from indexsets.service.permissions import IndexSetPermissions, PermissionCheck

logger = logging.getLogger(__name__)


class FilteredPaginator:
    """Permission-filtered listing of index sets.

    The returned count is the size of the whole permitted population, never
    the size of the page, so clients can compute page controls from it. With
    ``limit > 0`` the page query is restricted to the ids found permitted in
    the first pass, and both queries share one session.
    """

    def __init__(self, db_ops: AsyncDatabaseOps = None):
        self.db_ops = db_ops or async_db_ops

    async def paginate(self, skip: int, limit: int, is_permitted: PermissionCheck) -> Tuple[int, List[IndexSetConfig]]:
        if skip < 0:
            raise invalid_param("skip", "skip must not be negative")
        if limit < 0:
            raise invalid_param("limit", "limit must not be negative")

        def readable(config: IndexSetConfig) -> bool:
            return is_permitted(IndexSetPermissions.READ, config.id)

        async def _paginate(session):
            ops = AsyncDatabaseOps(session)
            configs = await ops.query_index_sets()

            if limit == 0:
                items = [config for config in configs if readable(config)]
                return len(items), items

            allowed_ids = {config.id for config in configs if readable(config)}
            if not allowed_ids:
                return 0, []
            items = await ops.query_index_sets_paginated(allowed_ids, limit, skip)
            return len(allowed_ids), items

        count, items = await self.db_ops._execute_query(_paginate)
        logger.debug(f"Listed {len(items)} of {count} permitted index sets (skip={skip}, limit={limit})")
        return count, items
