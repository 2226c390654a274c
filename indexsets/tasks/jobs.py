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
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from indexsets.index.registry import IndexSet
from indexsets.index.storage import IndexStorage

logger = logging.getLogger(__name__)


class JobResult:
    """Standardized job result format"""

    def __init__(self, success: bool, data: Any = None, error: Optional[str] = None,
                 metadata: Optional[Dict[str, Any]] = None):
        self.success = success
        self.data = data
        self.error = error
        self.metadata = metadata or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'data': self.data,
            'error': self.error,
            'metadata': self.metadata
        }


class SystemJob(ABC):
    """A unit of background work handed to a JobScheduler.

    Jobs that name an ``exclusivity_slot`` are mutually exclusive with every
    other job naming the same slot: at most one of them is in flight.
    """

    job_type: str = None
    exclusivity_slot: Optional[str] = None

    def __init__(self, job_id: str = None):
        self.job_id = job_id or str(uuid.uuid4())

    @property
    @abstractmethod
    def description(self) -> str:
        pass

    @abstractmethod
    def execute(self, storage: IndexStorage) -> JobResult:
        pass

    @abstractmethod
    def to_payload(self) -> Dict[str, Any]:
        """Plain-dict form that survives a trip through the task broker"""

    @classmethod
    @abstractmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SystemJob":
        pass


class IndexSetCleanupJob(SystemJob):
    """Deletes the physical indices belonging to one (already deleted) index set"""

    job_type = "index_set_cleanup"
    exclusivity_slot = "index-set-cleanup"

    def __init__(self, index_set: IndexSet, job_id: str = None):
        super().__init__(job_id)
        self.index_set = index_set

    @property
    def description(self) -> str:
        return f"Deleting indices of index set <{self.index_set.id}> (prefix {self.index_set.index_prefix})"

    def execute(self, storage: IndexStorage) -> JobResult:
        indices = [
            name for name in storage.list_indices(self.index_set.index_wildcard) if self.index_set.is_managed_index(name)
        ]
        logger.info(f"{self.description}: {len(indices)} indices to remove")

        deleted: List[str] = []
        failed: List[str] = []
        for index_name in indices:
            try:
                if storage.delete_index(index_name):
                    deleted.append(index_name)
            except Exception as e:
                logger.error(f"Failed to delete index {index_name}: {e}", exc_info=True)
                failed.append(index_name)

        logger.info(
            f"Index set {self.index_set.id} cleanup done: {len(deleted)} deleted, {len(failed)} failed, "
            f"{len(indices) - len(deleted) - len(failed)} already gone"
        )
        metadata = {"index_set_id": self.index_set.id, "job_id": self.job_id}
        if failed:
            return JobResult(
                success=False,
                data={"deleted": deleted, "failed": failed},
                error=f"Failed to delete {len(failed)} of {len(indices)} indices",
                metadata=metadata,
            )
        return JobResult(success=True, data={"deleted": deleted, "failed": []}, metadata=metadata)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "job_type": self.job_type,
            "job_id": self.job_id,
            "index_set": self.index_set.to_dict(),
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "IndexSetCleanupJob":
        return cls(IndexSet.from_dict(payload["index_set"]), job_id=payload["job_id"])


JOB_TYPES = {
    IndexSetCleanupJob.job_type: IndexSetCleanupJob,
}


def job_from_payload(payload: Dict[str, Any]) -> SystemJob:
    job_cls = JOB_TYPES.get(payload.get("job_type"))
    if job_cls is None:
        raise ValueError(f"Unknown job type: {payload.get('job_type')}")
    return job_cls.from_payload(payload)
