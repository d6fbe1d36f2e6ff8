"""历史记录 + 任务状态原子事务封装

在同一 SQLite 事务内原子提交状态变更记录和 tasks 行更新，
任一步骤失败时整体回滚，不产生部分写入。
读路径用 read_snapshot 把多条 SELECT 放进同一读事务，
其他进程在两次查询之间的提交不会被读到一半。
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from ..errors import TaskVersionConflictError
from ..models.task import StatusChangeRecord, Task
from .history_store import SqliteHistoryStore
from .task_store import SqliteTaskStore


def is_history_seq_conflict(error: Exception) -> bool:
    if not isinstance(error, aiosqlite.IntegrityError):
        return False
    text = str(error)
    return (
        "idx_status_history_task_seq" in text
        or "status_history.task_id, status_history.seq" in text
    )


async def create_task_record(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    task: Task,
) -> None:
    """单事务写入新任务"""
    try:
        await task_store.create_task(task)
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise


async def save_task_with_history(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    history_store: SqliteHistoryStore,
    task: Task,
    expected_version: int,
    record: StatusChangeRecord | None = None,
) -> None:
    """在同一事务内原子提交任务更新和（可选的）状态变更记录

    Args:
        conn: 数据库连接（需在同一连接上操作以保证事务性）
        task_store: TaskStore 实例
        history_store: HistoryStore 实例
        task: 更新后的任务（record 已追加到 status_history 末尾）
        expected_version: 读取任务时的版本号
        record: 本次新增的状态变更记录

    Raises:
        TaskVersionConflictError: 任务版本已变化
    """
    try:
        updated = await task_store.update_task(task, expected_version)
        if not updated:
            raise TaskVersionConflictError(task.task_id, expected_version)

        if record is not None:
            await history_store.append_record(
                task.task_id,
                len(task.status_history),
                record,
            )

        # 原子提交
        await conn.commit()
    except aiosqlite.IntegrityError as e:
        await conn.rollback()
        if is_history_seq_conflict(e):
            raise TaskVersionConflictError(task.task_id, expected_version) from e
        raise
    except Exception:
        await conn.rollback()
        raise


@asynccontextmanager
async def read_snapshot(conn: aiosqlite.Connection) -> AsyncIterator[None]:
    """在同一读事务内执行多条 SELECT

    WAL 模式下首条 SELECT 固定读快照，直到事务结束；
    连接上已有未结束的事务时直接复用。
    """
    if conn.in_transaction:
        yield
        return

    await conn.execute("BEGIN")
    try:
        yield
    finally:
        # 只读事务，回滚即释放快照
        await conn.rollback()
