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
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from indexsets.concurrent_control import MemoryLock, RedisLock, create_lock
from indexsets.config import settings
from indexsets.index.storage import ElasticsearchIndexStorage, IndexStorage
from indexsets.tasks.jobs import SystemJob

logger = logging.getLogger(__name__)


class SubmitStatus(str, Enum):
    SUBMITTED = "SUBMITTED"
    REJECTED = "REJECTED"


@dataclass
class SubmitResult:
    """Outcome of handing a job to a scheduler. Rejection is a value, not an error."""

    status: SubmitStatus
    job_id: str
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status == SubmitStatus.SUBMITTED

    @classmethod
    def submitted(cls, job_id: str) -> "SubmitResult":
        return cls(SubmitStatus.SUBMITTED, job_id)

    @classmethod
    def rejected(cls, job_id: str, reason: str) -> "SubmitResult":
        return cls(SubmitStatus.REJECTED, job_id, reason)


class JobScheduler(ABC):
    """Accepts background jobs without waiting for them.

    ``submit`` either enqueues the job or reports rejection right away; it
    never waits for an exclusivity slot to free up.
    """

    @abstractmethod
    async def submit(self, job: SystemJob) -> SubmitResult:
        pass


class CeleryJobScheduler(JobScheduler):
    """Runs jobs on Celery workers; exclusivity slots are Redis keys.

    The slot's lock value is handed to the worker together with the job and
    the worker releases the slot when the job ends. ``slot_ttl`` bounds how
    long a slot survives a worker that died mid-job.
    """

    def __init__(self, redis_url: str = None, slot_ttl: int = None, key_prefix: str = None):
        self._redis_url = redis_url or settings.redis_url
        self._slot_ttl = slot_ttl or settings.cleanup_job_slot_ttl
        self._key_prefix = key_prefix or settings.job_slot_key_prefix

    def slot_key(self, job: SystemJob) -> str:
        return f"{self._key_prefix}:{job.exclusivity_slot}"

    async def submit(self, job: SystemJob) -> SubmitResult:
        slot_lock = None
        if job.exclusivity_slot:
            slot_lock = create_lock(
                "redis",
                key=self.slot_key(job),
                redis_url=self._redis_url,
                expire_time=self._slot_ttl,
                retry_times=0,
            )
            try:
                acquired = await slot_lock.acquire(timeout=0)
            except Exception as e:
                logger.error(f"Cannot claim slot {job.exclusivity_slot} for job {job.job_id}: {e}")
                await slot_lock.disconnect()
                return SubmitResult.rejected(job.job_id, f"Exclusivity slot unavailable: {e}")
            if not acquired:
                await slot_lock.disconnect()
                return SubmitResult.rejected(
                    job.job_id, f"Another job is holding the <{job.exclusivity_slot}> slot"
                )

        try:
            self._enqueue(job, slot_lock)
        except Exception as e:
            logger.error(f"Failed to enqueue job {job.job_id}: {e}", exc_info=True)
            if slot_lock is not None:
                await slot_lock.release()
            return SubmitResult.rejected(job.job_id, f"Failed to enqueue job: {e}")
        finally:
            if slot_lock is not None:
                await slot_lock.disconnect()

        logger.info(f"Submitted job {job.job_id}: {job.description}")
        return SubmitResult.submitted(job.job_id)

    def _enqueue(self, job: SystemJob, slot_lock: Optional[RedisLock]):
        from indexsets.tasks.celery_tasks import run_system_job_task

        kwargs = {}
        if slot_lock is not None:
            kwargs = {"slot_key": slot_lock.key, "slot_token": slot_lock.lock_value}
        run_system_job_task.apply_async(args=[job.to_payload()], kwargs=kwargs, task_id=job.job_id)


class LocalJobScheduler(JobScheduler):
    """In-process scheduler for single-node deployments and tests"""

    def __init__(self, storage_factory: Callable[[], IndexStorage] = None, max_workers: int = None):
        self._storage_factory = storage_factory or ElasticsearchIndexStorage
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or settings.local_job_workers, thread_name_prefix="system-job"
        )

    async def submit(self, job: SystemJob) -> SubmitResult:
        slot_lock = None
        if job.exclusivity_slot:
            slot_lock = create_lock("memory", key=f"job-slot:{job.exclusivity_slot}")
            if not await slot_lock.acquire(timeout=0):
                return SubmitResult.rejected(
                    job.job_id, f"Another job is holding the <{job.exclusivity_slot}> slot"
                )

        try:
            self._executor.submit(self._run, job, slot_lock)
        except Exception as e:
            logger.error(f"Failed to enqueue job {job.job_id}: {e}", exc_info=True)
            if slot_lock is not None:
                slot_lock.release_sync()
            return SubmitResult.rejected(job.job_id, f"Failed to enqueue job: {e}")

        logger.info(f"Submitted job {job.job_id}: {job.description}")
        return SubmitResult.submitted(job.job_id)

    def _run(self, job: SystemJob, slot_lock: Optional[MemoryLock]):
        try:
            result = job.execute(self._storage_factory())
            if result.success:
                logger.info(f"Job {job.job_id} finished: {job.description}")
            else:
                logger.error(f"Job {job.job_id} finished with errors: {result.error}")
            return result
        except Exception as e:
            logger.error(f"Job {job.job_id} failed: {e}", exc_info=True)
            raise
        finally:
            if slot_lock is not None:
                slot_lock.release_sync()

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)


def create_job_scheduler(scheduler_type: str = None) -> JobScheduler:
    scheduler_type = scheduler_type or settings.job_scheduler
    if scheduler_type == "celery":
        return CeleryJobScheduler()
    elif scheduler_type == "local":
        return LocalJobScheduler()
    raise NotImplementedError(f"Job scheduler {scheduler_type} not supported")
