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
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from indexsets.db.models import IndexSetConfig
from indexsets.db.ops import AsyncDatabaseOps, async_db_ops
from indexsets.exceptions import (
    DefaultIndexSetDeletionException,
    IdMismatchException,
    IndexSetNotWritableException,
    PermissionDeniedException,
    ResourceNotFoundException,
    invalid_param,
)
from indexsets.index.registry import IndexSetRegistry, index_set_registry
from indexsets.index.validator import IndexSetValidator
from indexsets.schema import view_models
from indexsets.schema.view_models import INDEX_SET_ID_PATTERN, IndexSetList, IndexSetSummary
from indexsets.service.pagination import FilteredPaginator
from indexsets.service.permissions import IndexSetPermissions, PermissionCheck
from indexsets.tasks.jobs import IndexSetCleanupJob
from indexsets.tasks.scheduler import JobScheduler, create_job_scheduler

logger = logging.getLogger(__name__)

RESOURCE_TYPE = "index set"


class IndexSetService:
    """Index set service that handles business logic for index sets"""

    def __init__(
        self,
        session: AsyncSession = None,
        registry: IndexSetRegistry = None,
        job_scheduler: JobScheduler = None,
    ):
        # Use global db_ops instance by default, or create custom one with provided session
        if session is None:
            self.db_ops = async_db_ops
            self.registry = registry or index_set_registry
        else:
            self.db_ops = AsyncDatabaseOps(session)
            self.registry = registry or IndexSetRegistry(self.db_ops)
        self.paginator = FilteredPaginator(self.db_ops)
        self.validator = IndexSetValidator(self.db_ops)
        self._job_scheduler = job_scheduler

    @property
    def job_scheduler(self) -> JobScheduler:
        if self._job_scheduler is None:
            self._job_scheduler = create_job_scheduler()
        return self._job_scheduler

    def build_index_set_response(self, config: IndexSetConfig) -> view_models.IndexSetSummary:
        """Build IndexSetSummary response object for API return."""
        return IndexSetSummary(
            id=config.id,
            title=config.title,
            description=config.description,
            default=config.is_default,
            writable=config.writable,
            index_prefix=config.index_prefix,
            shards=config.shards,
            replicas=config.replicas,
            rotation_strategy_class=config.rotation_strategy_class,
            rotation_strategy=config.rotation_strategy or {},
            retention_strategy_class=config.retention_strategy_class,
            retention_strategy=config.retention_strategy or {},
            creation_date=config.creation_date,
            index_analyzer=config.index_analyzer,
            index_template_name=config.index_template_name,
            index_optimization_max_num_segments=config.index_optimization_max_num_segments,
            index_optimization_disabled=config.index_optimization_disabled,
            field_type_refresh_interval=config.field_type_refresh_interval,
        )

    def build_index_set_config(
        self, index_set_in: view_models.IndexSetSummary, index_set_id: str = None, existing: IndexSetConfig = None
    ) -> IndexSetConfig:
        """Build the config to persist. The default flag and creation date are never taken from input.

        Without ``index_set_id`` the store assigns the id on save.
        """
        return IndexSetConfig(
            id=index_set_id,
            title=index_set_in.title,
            description=index_set_in.description,
            index_prefix=index_set_in.index_prefix,
            shards=index_set_in.shards,
            replicas=index_set_in.replicas,
            rotation_strategy_class=index_set_in.rotation_strategy_class,
            rotation_strategy=index_set_in.rotation_strategy,
            retention_strategy_class=index_set_in.retention_strategy_class,
            retention_strategy=index_set_in.retention_strategy,
            index_analyzer=index_set_in.index_analyzer,
            index_template_name=index_set_in.index_template_name or f"{index_set_in.index_prefix}-template",
            index_optimization_max_num_segments=index_set_in.index_optimization_max_num_segments,
            index_optimization_disabled=index_set_in.index_optimization_disabled,
            field_type_refresh_interval=index_set_in.field_type_refresh_interval,
            writable=index_set_in.writable,
            is_default=existing.is_default if existing else False,
            creation_date=existing.creation_date if existing else None,
        )

    @staticmethod
    def check_permission(is_permitted: PermissionCheck, permission: str, index_set_id: Optional[str] = None):
        if not is_permitted(permission, index_set_id):
            raise PermissionDeniedException(permission, index_set_id)

    async def _validate(self, config: IndexSetConfig):
        valid, field, msg = await self.validator.validate(config)
        if not valid:
            raise invalid_param(field, msg)

    async def list_index_sets(self, skip: int, limit: int, is_permitted: PermissionCheck) -> view_models.IndexSetList:
        count, configs = await self.paginator.paginate(skip, limit, is_permitted)
        return IndexSetList(count=count, items=[self.build_index_set_response(config) for config in configs])

    async def get_index_set(self, index_set_id: str, is_permitted: PermissionCheck) -> view_models.IndexSetSummary:
        self.check_permission(is_permitted, IndexSetPermissions.READ, index_set_id)
        config = await self.db_ops.query_index_set(index_set_id)
        if config is None:
            raise ResourceNotFoundException(RESOURCE_TYPE, index_set_id)
        return self.build_index_set_response(config)

    async def get_default_index_set(self, is_permitted: PermissionCheck) -> view_models.IndexSetSummary:
        config = await self.db_ops.query_default_index_set()
        if config is None:
            raise ResourceNotFoundException("default index set")
        self.check_permission(is_permitted, IndexSetPermissions.READ, config.id)
        return self.build_index_set_response(config)

    async def create_index_set(
        self, index_set_in: view_models.IndexSetSummary, is_permitted: PermissionCheck
    ) -> view_models.IndexSetSummary:
        self.check_permission(is_permitted, IndexSetPermissions.CREATE)
        if index_set_in.id is not None:
            raise invalid_param("id", "Index set ID must not be set when creating an index set")

        config = self.build_index_set_config(index_set_in)
        await self._validate(config)

        saved = await self.db_ops.save_index_set(config)
        self.registry.invalidate()
        logger.info(f"Created index set {saved.id} with prefix {saved.index_prefix}")
        return self.build_index_set_response(saved)

    async def update_index_set(
        self, index_set_id: str, index_set_in: view_models.IndexSetSummary, is_permitted: PermissionCheck
    ) -> view_models.IndexSetSummary:
        self.check_permission(is_permitted, IndexSetPermissions.EDIT, index_set_id)
        if index_set_in.id is not None and index_set_in.id != index_set_id:
            raise IdMismatchException(index_set_id, index_set_in.id)

        existing = await self.db_ops.query_index_set(index_set_id)
        if existing is None:
            # Updating an unknown id creates the index set
            self.check_permission(is_permitted, IndexSetPermissions.CREATE)
            if not re.fullmatch(INDEX_SET_ID_PATTERN, index_set_id):
                raise invalid_param("id", f"Index set ID must match {INDEX_SET_ID_PATTERN}")

        config = self.build_index_set_config(index_set_in, index_set_id, existing)
        await self._validate(config)

        saved = await self.db_ops.save_index_set(config)
        self.registry.invalidate()
        logger.info(f"{'Updated' if existing else 'Created'} index set {saved.id}")
        return self.build_index_set_response(saved)

    async def set_default_index_set(
        self, index_set_id: str, is_permitted: PermissionCheck
    ) -> view_models.IndexSetSummary:
        self.check_permission(is_permitted, IndexSetPermissions.EDIT, index_set_id)

        config = await self.db_ops.query_index_set(index_set_id)
        if config is None:
            raise ResourceNotFoundException(RESOURCE_TYPE, index_set_id)
        if not config.writable:
            raise IndexSetNotWritableException(index_set_id)

        updated = await self.db_ops.set_default_index_set(index_set_id)
        if updated is None:
            raise ResourceNotFoundException(RESOURCE_TYPE, index_set_id, source="store")
        self.registry.invalidate()
        logger.info(f"Index set {index_set_id} is now the default index set")
        return self.build_index_set_response(updated)

    async def delete_index_set(self, index_set_id: str, is_permitted: PermissionCheck, delete_indices: bool = True):
        """Delete an index set and hand the removal of its indices to the job scheduler.

        Every caller-facing check happens before the row is deleted. Once it
        is, the outcome no longer depends on the cleanup job: a rejected
        submission is logged and the call still succeeds, leaving the indices
        orphaned.
        """
        self.check_permission(is_permitted, IndexSetPermissions.DELETE, index_set_id)

        index_set = await self.registry.get(index_set_id)
        if index_set is None:
            logger.info(f"Index set {index_set_id} is not known to the registry")
            raise ResourceNotFoundException(RESOURCE_TYPE, index_set_id, source="registry")

        if index_set.is_default:
            raise DefaultIndexSetDeletionException(index_set_id)

        affected = await self.db_ops.delete_index_set(index_set_id)
        self.registry.invalidate()
        if affected == 0:
            logger.warning(f"Index set {index_set_id} vanished from the store before it could be deleted")
            raise ResourceNotFoundException(RESOURCE_TYPE, index_set_id, source="store")

        logger.info(f"Deleted index set {index_set_id}")

        if not delete_indices:
            logger.info(f"Leaving indices {index_set.index_wildcard} of deleted index set {index_set_id} in place")
            return

        result = await self.job_scheduler.submit(IndexSetCleanupJob(index_set))
        if not result.accepted:
            logger.error(f"Error running system job {result.job_id} for index set {index_set_id}: {result.reason}")


# Create a global service instance for easy access
index_set_service = IndexSetService()
