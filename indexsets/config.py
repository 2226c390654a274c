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
from typing import AsyncGenerator, List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="INDEXSETS_", extra="ignore")

    # Database
    database_url: str = "sqlite+aiosqlite:///./indexsets.db"
    database_echo: bool = False

    # Redis is used for the job exclusivity slots
    redis_url: str = "redis://localhost:6379"

    # Celery
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/0"

    # Job scheduling: "celery" or "local"
    job_scheduler: str = "celery"
    job_slot_key_prefix: str = "indexsets:job-slot"
    # Upper bound on how long a crashed worker can keep the cleanup slot
    cleanup_job_slot_ttl: int = 3600
    local_job_workers: int = 2

    # Seconds before the index set registry reloads its snapshot
    registry_cache_ttl: float = 30.0

    # Storage backend
    elasticsearch_hosts: List[str] = ["http://localhost:9200"]
    elasticsearch_request_timeout: int = 30

    log_level: str = "INFO"


settings = Settings()


def configure_logging(level: str = None):
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async_engine = create_async_engine(settings.database_url, echo=settings.database_echo)
AsyncSessionLocal = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
