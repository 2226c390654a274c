import pytest
import pytest_asyncio
from index_set_fakes import FakeJobScheduler
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from indexsets.db.models import IndexSetConfig
from indexsets.db.ops import AsyncDatabaseOps
from indexsets.index.registry import IndexSetRegistry
from indexsets.service.index_set_service import IndexSetService


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False}
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def db_ops(session):
    return AsyncDatabaseOps(session)


@pytest.fixture
def registry(db_ops):
    return IndexSetRegistry(db_ops, cache_ttl=300)


@pytest.fixture
def scheduler():
    return FakeJobScheduler()


@pytest.fixture
def service(session, registry, scheduler):
    return IndexSetService(session=session, registry=registry, job_scheduler=scheduler)


@pytest_asyncio.fixture
async def seeded(db_ops):
    """Three index sets, the first of them the default"""
    configs = [
        IndexSetConfig(id="default-set", title="Default", index_prefix="messages", is_default=True),
        IndexSetConfig(id="audit-set", title="Audit", index_prefix="audit"),
        IndexSetConfig(id="metrics-set", title="Metrics", index_prefix="metrics"),
    ]
    return [await db_ops.save_index_set(config) for config in configs]
