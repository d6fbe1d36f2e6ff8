"""Projection 模块 -- status_history 到任务当前状态的投影

apply_record 是追加状态变更记录的唯一途径（change_status 与重建共用）；
rebuild_all 从 status_history 表重新计算 tasks 表中的派生字段，修复漂移。
"""

import time

import aiosqlite
import structlog

from .models.enums import TaskStatus
from .models.task import StatusChangeRecord, Task
from .store.history_store import SqliteHistoryStore
from .store.task_store import SqliteTaskStore

log = structlog.get_logger()

_DERIVED_FIELDS = ("status", "started_at", "completed_at")


def apply_record(task: Task, record: StatusChangeRecord) -> Task:
    """将一条状态变更记录应用到任务，返回新的 Task（原对象不变）

    - 追加记录到 status_history 末尾
    - status 置为 record.to_status
    - 首次进入 in_progress / done 时写入 started_at / completed_at
    - version 递增
    """
    update: dict = {
        "status": record.to_status,
        "status_history": [*task.status_history, record],
        "updated_at": record.changed_at,
        "version": task.version + 1,
    }
    if record.to_status == TaskStatus.IN_PROGRESS and task.started_at is None:
        update["started_at"] = record.changed_at
    if record.to_status == TaskStatus.DONE and task.completed_at is None:
        update["completed_at"] = record.changed_at
    return task.model_copy(update=update)


def rebuild_task(task: Task) -> Task:
    """仅根据 status_history 重新推导 status / started_at / completed_at"""
    rebuilt = task.model_copy(
        update={
            "status": TaskStatus.PENDING,
            "status_history": [],
            "started_at": None,
            "completed_at": None,
        }
    )
    for record in task.status_history:
        rebuilt = apply_record(rebuilt, record)
    return rebuilt.model_copy(
        update={"updated_at": task.updated_at, "version": task.version}
    )


def has_drift(task: Task) -> bool:
    """任务的派生字段是否与 status_history 不一致"""
    rebuilt = rebuild_task(task)
    return any(getattr(task, f) != getattr(rebuilt, f) for f in _DERIVED_FIELDS)


async def rebuild_all(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    history_store: SqliteHistoryStore,
) -> int:
    """从 status_history 表重建 tasks 表的派生字段

    流程：
    1. 读取所有任务及其历史记录
    2. 在内存中按历史重新推导 status / started_at / completed_at
    3. 对存在漂移的任务按版本号条件写回
    4. 单事务提交

    Returns:
        被修复的任务数
    """
    start_time = time.monotonic()

    tasks = await task_store.list_tasks()
    history = await history_store.get_history_for_tasks([t.task_id for t in tasks])

    await log.ainfo(
        "projection_rebuild_started",
        task_count=len(tasks),
    )

    repaired = 0
    try:
        for task in tasks:
            full = task.model_copy(update={"status_history": history[task.task_id]})
            if not has_drift(full):
                continue
            rebuilt = rebuild_task(full).model_copy(update={"version": task.version + 1})
            if await task_store.update_task(rebuilt, task.version):
                repaired += 1
                await log.awarning(
                    "projection_drift_repaired",
                    task_id=task.task_id,
                    stored_status=task.status.value,
                    rebuilt_status=rebuilt.status.value,
                )
        await conn.commit()
    except Exception:
        await conn.rollback()
        raise

    elapsed_ms = int((time.monotonic() - start_time) * 1000)
    await log.ainfo(
        "projection_rebuild_completed",
        task_count=len(tasks),
        repaired_count=repaired,
        elapsed_ms=elapsed_ms,
    )

    return repaired
