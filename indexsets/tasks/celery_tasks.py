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

"""
Celery tasks entry points
This module only handles task orchestration and error handling
Job logic lives in indexsets.tasks.jobs
"""

import logging
from typing import Any, Dict

from asgiref.sync import async_to_sync

from config.celery import app
from indexsets.concurrent_control import RedisLock
from indexsets.config import settings
from indexsets.index.storage import ElasticsearchIndexStorage
from indexsets.tasks.jobs import job_from_payload

logger = logging.getLogger(__name__)


def release_job_slot(slot_key: str, slot_token: str):
    """Free the exclusivity slot claimed by the scheduler for this job"""

    async def _release():
        lock = RedisLock.adopt(slot_key, slot_token, redis_url=settings.redis_url)
        try:
            if not await lock.release():
                logger.warning(f"Slot {slot_key} was not held by {slot_token} anymore")
        finally:
            await lock.disconnect()

    async_to_sync(_release)()


@app.task(bind=True)
def run_system_job_task(self, payload: Dict[str, Any], slot_key: str = None, slot_token: str = None) -> Any:
    """
    System job entry point

    Args:
        payload: Job payload produced by SystemJob.to_payload()
        slot_key: Redis key of the exclusivity slot held for this job
        slot_token: Value the slot was claimed with
    """
    try:
        job = job_from_payload(payload)
        result = job.execute(ElasticsearchIndexStorage())

        if result.success:
            logger.info(f"Job {job.job_id} finished: {job.description}")
        else:
            logger.error(f"Job {job.job_id} finished with errors: {result.error}")
        return result.to_dict()

    except Exception as e:
        logger.error(f"System job {payload.get('job_id')} failed: {str(e)}", exc_info=True)
        raise
    finally:
        if slot_key and slot_token:
            release_job_slot(slot_key, slot_token)
