"""集成测试共享 fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tasktrack.core.store import create_store_group


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path):
    """集成测试用 FastAPI app"""
    os.environ["TASKTRACK_DB_PATH"] = str(tmp_path / "test.db")

    from tasktrack.gateway.main import create_app, init_services

    app = create_app()

    store_group = await create_store_group(str(tmp_path / "test.db"))
    init_services(app, store_group)

    yield app

    await store_group.conn.close()
    os.environ.pop("TASKTRACK_DB_PATH", None)


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
