"""FastAPI lifespan 测试

测试内容：
1. 启动时按 TASKTRACK_DB_PATH 初始化 DB 与服务
2. 两个服务共享同一份 task 级锁
3. 关闭时连接清理
"""

from pathlib import Path

import pytest
from tasktrack.gateway.main import create_app, lifespan


class TestLifespan:
    """应用生命周期"""

    async def test_startup_and_shutdown(self, tmp_path: Path, monkeypatch):
        db_path = tmp_path / "nested" / "lifespan.db"
        monkeypatch.setenv("TASKTRACK_DB_PATH", str(db_path))
        app = create_app()

        async with lifespan(app):
            assert db_path.exists()
            state = app.state
            assert state.status_service._locks is state.task_locks
            assert state.task_service._locks is state.task_locks

            task = await state.task_service.create_task("生命周期任务", "alice")
            loaded = await state.task_service.get_task(task.task_id)
            assert loaded == task

        # 关闭后连接不可用
        with pytest.raises(ValueError):
            await state.store_group.conn.execute("SELECT 1")
