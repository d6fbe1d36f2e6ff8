"""apps/gateway 测试配置 -- FastAPI AsyncClient + async DB fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tasktrack.core.store import InMemoryTaskRepository, create_store_group
from tasktrack.gateway.services.status_service import StatusTrackingService
from tasktrack.gateway.services.task_locks import TaskLockRegistry
from tasktrack.gateway.services.task_service import TaskService


@pytest_asyncio.fixture
async def app(tmp_path: Path):
    """创建测试用 FastAPI app 实例（绕过 lifespan 手动初始化服务）"""
    os.environ["TASKTRACK_DB_PATH"] = str(tmp_path / "sqlite" / "test.db")

    from tasktrack.gateway.main import create_app, init_services

    application = create_app()
    store_group = await create_store_group(os.environ["TASKTRACK_DB_PATH"])
    init_services(application, store_group)

    yield application

    await store_group.conn.close()
    os.environ.pop("TASKTRACK_DB_PATH", None)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def memory_services(clock):
    """基于内存仓储的服务组合：(TaskService, StatusTrackingService, 仓储)"""
    repository = InMemoryTaskRepository()
    locks = TaskLockRegistry()
    task_service = TaskService(repository, clock=clock, locks=locks)
    status_service = StatusTrackingService(repository, clock=clock, locks=locks)
    return task_service, status_service, repository
