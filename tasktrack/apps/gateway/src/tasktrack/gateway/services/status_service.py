"""StatusTrackingService -- 任务状态变更与只读投影

状态变更流程（change_status）：
1. 读取任务（不存在 -> TaskNotFoundError）
2. Transition Policy 裁决（拒绝 -> 对应类型化异常）
3. 计算在原状态的停留时长
4. 追加 StatusChangeRecord、更新 status / started_at / completed_at
5. 按版本号条件原子保存；版本冲突时整体重试（重新读取 + 重新裁决）

同一任务的变更在 task 级锁内串行执行，跨进程并发由版本号兜底。
"""

from collections.abc import Callable
from datetime import UTC, datetime

import structlog
from tasktrack.core.config import MAX_CONFLICT_RETRIES, RECENT_CHANGES_LIMIT
from tasktrack.core.errors import TaskNotFoundError, TaskVersionConflictError
from tasktrack.core.metrics import (
    compute_progress,
    compute_statistics,
    flatten_recent_changes,
)
from tasktrack.core.models import (
    RecentStatusChange,
    StatusChangeRecord,
    StatusStatistics,
    Task,
    TaskStatus,
)
from tasktrack.core.policy import allowed_targets, evaluate_transition
from tasktrack.core.projection import apply_record
from tasktrack.core.store.protocols import TaskRepository
from tasktrack.core.timing import current_status_duration

from .task_locks import TaskLockRegistry

log = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class StatusTrackingService:
    """任务状态跟踪服务"""

    def __init__(
        self,
        repository: TaskRepository,
        clock: Callable[[], datetime] | None = None,
        locks: TaskLockRegistry | None = None,
        max_conflict_retries: int = MAX_CONFLICT_RETRIES,
    ) -> None:
        self._repository = repository
        self._clock = clock or _utcnow
        self._locks = locks or TaskLockRegistry()
        self._max_conflict_retries = max(1, max_conflict_retries)

    async def change_status(
        self,
        task_id: str,
        new_status: TaskStatus | str,
        acting_user: str,
        reason: str | None = None,
    ) -> Task:
        """变更任务状态

        Args:
            task_id: 任务 ID
            new_status: 目标状态
            acting_user: 操作者用户 ID
            reason: 变更原因（进入 blocked 时必填）

        Returns:
            更新后的 Task

        Raises:
            TaskNotFoundError: 任务不存在
            ImmutableStateError: 任务已完成
            InvalidTransitionError: 流转不在合法流转表中
            PermissionDeniedError: 操作者不是负责人/创建者
            MissingReasonError: 进入 blocked 未提供原因
            TaskVersionConflictError: 并发冲突重试耗尽
        """
        reason = reason.strip() if reason and reason.strip() else None

        async with self._locks.hold(task_id):
            return await self._change_status_with_retry(
                task_id, new_status, acting_user, reason
            )

    async def _change_status_with_retry(
        self,
        task_id: str,
        new_status: TaskStatus | str,
        acting_user: str,
        reason: str | None,
    ) -> Task:
        """读取-裁决-追加-保存，在版本冲突时整体重试"""
        for attempt in range(1, self._max_conflict_retries + 1):
            task = await self._repository.get_task(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)

            verdict = evaluate_transition(task, new_status, acting_user, reason)
            if not verdict.allowed:
                log.info(
                    "status_change_denied",
                    task_id=task_id,
                    verdict=verdict.kind.value,
                    from_status=task.status.value,
                    to_status=verdict.requested_status,
                    acting_user=acting_user,
                )
                raise verdict.to_error()

            now = self._clock()
            record = StatusChangeRecord(
                from_status=task.status,
                to_status=TaskStatus(new_status),
                changed_by=acting_user,
                changed_at=now,
                reason=reason,
                duration=current_status_duration(task, now),
            )
            updated = apply_record(task, record)

            try:
                await self._repository.save_task(updated, task.version, record)
            except TaskVersionConflictError:
                if attempt < self._max_conflict_retries:
                    log.warning(
                        "task_version_conflict_retry",
                        task_id=task_id,
                        attempt=attempt,
                    )
                    continue
                log.error(
                    "task_version_conflict_exhausted",
                    task_id=task_id,
                    attempts=attempt,
                )
                raise

            log.info(
                "task_status_changed",
                task_id=task_id,
                from_status=record.from_status.value,
                to_status=record.to_status.value,
                changed_by=acting_user,
                duration_ms=record.duration,
            )
            return updated

        raise RuntimeError("failed to change status after retries")

    def current_status_duration(self, task: Task) -> int:
        """任务在当前状态已停留的毫秒数"""
        return current_status_duration(task, self._clock())

    async def get_status_history(self, task_id: str) -> list[StatusChangeRecord]:
        """查询任务的状态变更历史（时间正序）"""
        task = await self._load(task_id)
        return list(task.status_history)

    async def get_status_statistics(self, task_id: str) -> StatusStatistics:
        """查询任务的状态统计"""
        task = await self._load(task_id)
        return compute_statistics(task, self._clock())

    async def get_task_progress(self, task_id: str) -> int:
        """查询任务进度百分比（0/25/50/75/100）"""
        task = await self._load(task_id)
        return compute_progress(task)

    async def get_available_transitions(
        self, task_id: str, acting_user: str
    ) -> list[TaskStatus]:
        """查询操作者当前可发起的目标状态"""
        task = await self._load(task_id)
        return allowed_targets(task, acting_user)

    async def get_tasks_by_status(
        self, user_id: str, status: TaskStatus | str
    ) -> list[Task]:
        """查询用户（创建者或负责人）处于指定状态的任务，最近更新在前"""
        return await self._repository.list_tasks_for_user(user_id, TaskStatus(status))

    async def get_recent_status_changes(
        self, user_id: str, limit: int = RECENT_CHANGES_LIMIT
    ) -> list[RecentStatusChange]:
        """查询用户相关任务的最近状态变更，按 changed_at 倒序"""
        tasks = await self._repository.list_tasks_for_user(user_id)
        return flatten_recent_changes(tasks, limit)

    async def _load(self, task_id: str) -> Task:
        task = await self._repository.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task
