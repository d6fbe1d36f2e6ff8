"""TaskService -- 任务创建/指派/查询业务逻辑

任务创建后处于 pending，status_history 为空；
状态变更不经过此服务，统一由 StatusTrackingService 处理。
"""

from collections.abc import Callable
from datetime import UTC, datetime

import structlog
from tasktrack.core.errors import (
    ImmutableStateError,
    PermissionDeniedError,
    TaskNotFoundError,
)
from tasktrack.core.models import (
    TERMINAL_STATES,
    Task,
    TaskPriority,
    TaskStatus,
)
from tasktrack.core.store.protocols import TaskRepository
from ulid import ULID

from .task_locks import TaskLockRegistry

log = structlog.get_logger()


class TaskService:
    """任务业务服务"""

    def __init__(
        self,
        repository: TaskRepository,
        clock: Callable[[], datetime] | None = None,
        locks: TaskLockRegistry | None = None,
    ) -> None:
        self._repository = repository
        self._clock = clock or (lambda: datetime.now(UTC))
        self._locks = locks or TaskLockRegistry()

    async def create_task(
        self,
        title: str,
        created_by: str,
        assigned_to: str | None = None,
        description: str = "",
        priority: TaskPriority = TaskPriority.MEDIUM,
        deadline: datetime | None = None,
    ) -> Task:
        """创建任务（初始状态 pending，历史为空）"""
        now = self._clock()
        task = Task(
            task_id=str(ULID()),
            title=title,
            description=description,
            created_by=created_by,
            assigned_to=assigned_to,
            priority=priority,
            deadline=deadline,
            status=TaskStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        await self._repository.create_task(task)

        log.info(
            "task_created",
            task_id=task.task_id,
            created_by=created_by,
            assigned_to=assigned_to,
        )
        return task

    async def get_task(self, task_id: str) -> Task | None:
        """查询任务详情"""
        return await self._repository.get_task(task_id)

    async def list_tasks_for_user(
        self, user_id: str, status: TaskStatus | None = None
    ) -> list[Task]:
        """查询用户相关任务列表"""
        return await self._repository.list_tasks_for_user(user_id, status)

    async def assign_task(
        self, task_id: str, assigned_to: str, acting_user: str
    ) -> Task:
        """重新指派负责人

        只有创建者可以指派；已完成的任务不可修改。
        与 change_status 共享 task 级锁，并按版本号条件保存。

        Raises:
            TaskNotFoundError: 任务不存在
            PermissionDeniedError: 操作者不是创建者
            ImmutableStateError: 任务已完成
        """
        async with self._locks.hold(task_id):
            task = await self._repository.get_task(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)
            if task.status in TERMINAL_STATES:
                raise ImmutableStateError(
                    task.status, "Cannot reassign completed tasks"
                )
            if task.created_by != acting_user:
                raise PermissionDeniedError("Only the task creator can reassign this task")

            updated = task.model_copy(
                update={
                    "assigned_to": assigned_to,
                    "updated_at": self._clock(),
                    "version": task.version + 1,
                }
            )
            await self._repository.save_task(updated, task.version)

        log.info(
            "task_assigned",
            task_id=task_id,
            assigned_to=assigned_to,
            previous=task.assigned_to,
        )
        return updated
