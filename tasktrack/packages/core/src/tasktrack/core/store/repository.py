"""TaskRepository 的 SQLite 实现

组合 SqliteTaskStore 与 SqliteHistoryStore，对外暴露完整 Task（含 status_history）。
共享连接上的事务不能交错，因此所有操作经同一把 asyncio.Lock 串行化；
任务行与其历史记录在同一读事务内读取，保证读到同一快照。
"""

import asyncio

import aiosqlite

from ..models.enums import TaskStatus
from ..models.task import StatusChangeRecord, Task
from .history_store import SqliteHistoryStore
from .task_store import SqliteTaskStore
from .transaction import create_task_record, read_snapshot, save_task_with_history


class SqliteTaskRepository:
    """TaskRepository 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        task_store: SqliteTaskStore,
        history_store: SqliteHistoryStore,
    ) -> None:
        self._conn = conn
        self._task_store = task_store
        self._history_store = history_store
        self._lock = asyncio.Lock()

    async def create_task(self, task: Task) -> None:
        async with self._lock:
            await create_task_record(self._conn, self._task_store, task)

    async def get_task(self, task_id: str) -> Task | None:
        async with self._lock, read_snapshot(self._conn):
            task = await self._task_store.get_task(task_id)
            if task is None:
                return None
            history = await self._history_store.get_history_for_task(task_id)
        return task.model_copy(update={"status_history": history})

    async def list_tasks_for_user(
        self,
        user_id: str,
        status: TaskStatus | None = None,
    ) -> list[Task]:
        async with self._lock, read_snapshot(self._conn):
            tasks = await self._task_store.list_tasks(user_id=user_id, status=status)
            history = await self._history_store.get_history_for_tasks(
                [t.task_id for t in tasks]
            )
        return [
            t.model_copy(update={"status_history": history[t.task_id]}) for t in tasks
        ]

    async def save_task(
        self,
        task: Task,
        expected_version: int,
        record: StatusChangeRecord | None = None,
    ) -> None:
        async with self._lock:
            await save_task_with_history(
                self._conn,
                self._task_store,
                self._history_store,
                task,
                expected_version,
                record,
            )
