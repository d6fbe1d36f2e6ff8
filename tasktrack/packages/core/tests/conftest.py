"""packages/core 测试配置 -- 核心层 fixture"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

import pytest
import pytest_asyncio
from tasktrack.core.models import Task, TaskStatus
from tasktrack.core.store import StoreGroup, create_store_group


@pytest_asyncio.fixture
async def store_group(tmp_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """核心层已初始化的 StoreGroup"""
    sg = await create_store_group(str(tmp_path / "core_test.db"))
    yield sg
    await sg.conn.close()


@pytest.fixture
def make_task():
    """构造测试任务的工厂"""

    def _make(
        task_id: str = "01JTASK0000000000000000001",
        status: TaskStatus = TaskStatus.PENDING,
        created_by: str = "creator",
        assigned_to: str | None = "assignee",
        created_at: datetime | None = None,
        **kwargs,
    ) -> Task:
        ts = created_at or datetime(2026, 1, 5, 9, 0, tzinfo=UTC)
        return Task(
            task_id=task_id,
            title=kwargs.pop("title", "测试任务"),
            created_by=created_by,
            assigned_to=assigned_to,
            status=status,
            created_at=ts,
            updated_at=ts,
            **kwargs,
        )

    return _make
