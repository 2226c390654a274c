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

from typing import Collection, List, Optional

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from indexsets.config import get_async_session
from indexsets.db.models import IndexSetConfig, index_set_pk, utc_now


class AsyncDatabaseOps:
    """Persistence for index set configurations.

    With a session supplied, every call runs on that session and writes are
    only flushed; committing is left to the owner of the session. Without one,
    each call opens its own session and write operations commit on success.
    """

    def __init__(self, session: Optional[AsyncSession] = None):
        self._session = session

    async def _execute_query(self, query_func):
        """Execute a read-only query with proper session management"""
        if self._session:
            return await query_func(self._session)

        async for session in get_async_session():
            return await query_func(session)

    async def execute_with_transaction(self, operation):
        """Execute a write operation, committing when this instance owns the session"""
        if self._session:
            result = await operation(self._session)
            await self._session.flush()
            return result

        async for session in get_async_session():
            try:
                result = await operation(session)
                await session.commit()
                return result
            except Exception:
                await session.rollback()
                raise

    # Index set queries
    async def query_index_sets(self) -> List[IndexSetConfig]:
        async def _query(session):
            stmt = select(IndexSetConfig).order_by(IndexSetConfig.title, IndexSetConfig.id)
            result = await session.execute(stmt)
            return list(result.scalars().all())

        return await self._execute_query(_query)

    async def query_index_sets_paginated(
        self, index_set_ids: Collection[str], limit: int, skip: int
    ) -> List[IndexSetConfig]:
        """Return one page of the index sets whose id is in ``index_set_ids``"""
        if not index_set_ids:
            return []

        async def _query(session):
            stmt = (
                select(IndexSetConfig)
                .where(IndexSetConfig.id.in_(list(index_set_ids)))
                .order_by(IndexSetConfig.title, IndexSetConfig.id)
                .offset(skip)
                .limit(limit)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

        return await self._execute_query(_query)

    async def query_index_set(self, index_set_id: str) -> Optional[IndexSetConfig]:
        async def _query(session):
            stmt = select(IndexSetConfig).where(IndexSetConfig.id == index_set_id)
            result = await session.execute(stmt)
            return result.scalars().first()

        return await self._execute_query(_query)

    async def query_default_index_set(self) -> Optional[IndexSetConfig]:
        async def _query(session):
            stmt = select(IndexSetConfig).where(IndexSetConfig.is_default.is_(True))
            result = await session.execute(stmt)
            return result.scalars().first()

        return await self._execute_query(_query)

    # Index set mutations
    async def save_index_set(self, config: IndexSetConfig) -> IndexSetConfig:
        """Insert or update by id; a config without id gets a new one"""

        async def _operation(session):
            if not config.id:
                config.id = index_set_pk()
            if config.creation_date is None:
                config.creation_date = utc_now()
            instance = await session.merge(config)
            await session.flush()
            await session.refresh(instance)
            return instance

        return await self.execute_with_transaction(_operation)

    async def delete_index_set(self, index_set_id: str, exclude_default: bool = True) -> int:
        """Delete by id and return the number of affected rows.

        With ``exclude_default`` the default index set row is never matched.
        """

        async def _operation(session):
            stmt = delete(IndexSetConfig).where(IndexSetConfig.id == index_set_id)
            if exclude_default:
                stmt = stmt.where(IndexSetConfig.is_default.is_(False))
            result = await session.execute(stmt, execution_options={"synchronize_session": False})
            return result.rowcount or 0

        return await self.execute_with_transaction(_operation)

    async def set_default_index_set(self, index_set_id: str) -> Optional[IndexSetConfig]:
        """Move the default flag to ``index_set_id`` within one transaction"""

        async def _operation(session):
            stmt = select(IndexSetConfig).where(IndexSetConfig.id == index_set_id)
            result = await session.execute(stmt)
            instance = result.scalars().first()
            if instance is None:
                return None

            await session.execute(
                update(IndexSetConfig)
                .where(IndexSetConfig.id != index_set_id, IndexSetConfig.is_default.is_(True))
                .values(is_default=False)
            )
            instance.is_default = True
            session.add(instance)
            await session.flush()
            await session.refresh(instance)
            return instance

        return await self.execute_with_transaction(_operation)


async_db_ops = AsyncDatabaseOps()
