"""TaskService 测试

测试内容：
1. 创建任务：pending + 空历史 + ULID
2. 指派：仅创建者、终态不可改、任务不存在
3. 指派后新负责人可开始工作
"""

import pytest
from tasktrack.core.errors import (
    ImmutableStateError,
    PermissionDeniedError,
    TaskNotFoundError,
)
from tasktrack.core.models import TaskPriority, TaskStatus


class TestCreateTask:
    """创建任务"""

    async def test_create_defaults(self, memory_services, clock):
        task_service, _, repository = memory_services
        task = await task_service.create_task(
            title="整理需求",
            created_by="alice",
            priority=TaskPriority.HIGH,
        )

        assert len(task.task_id) == 26
        assert task.status == TaskStatus.PENDING
        assert task.status_history == []
        assert task.created_at == clock.now
        assert task.updated_at == clock.now
        assert task.priority == TaskPriority.HIGH
        assert await repository.get_task(task.task_id) == task

    async def test_list_for_user(self, memory_services):
        task_service, _, _ = memory_services
        await task_service.create_task("任务一", "alice")
        await task_service.create_task("任务二", "bob", assigned_to="alice")
        await task_service.create_task("任务三", "bob")

        tasks = await task_service.list_tasks_for_user("alice")
        assert {t.title for t in tasks} == {"任务一", "任务二"}


class TestAssignTask:
    """重新指派"""

    async def test_creator_assigns(self, memory_services, clock):
        task_service, status_service, _ = memory_services
        task = await task_service.create_task("任务", "alice", assigned_to="bob")
        await status_service.change_status(task.task_id, "ready", "alice")

        clock.advance(minutes=3)
        updated = await task_service.assign_task(task.task_id, "carol", "alice")
        assert updated.assigned_to == "carol"
        assert updated.updated_at == clock.now
        assert updated.status == TaskStatus.READY
        assert len(updated.status_history) == 1

        # 新负责人可以开始，旧负责人不行
        with pytest.raises(PermissionDeniedError):
            await status_service.change_status(task.task_id, "in_progress", "bob")
        started = await status_service.change_status(task.task_id, "in_progress", "carol")
        assert started.status == TaskStatus.IN_PROGRESS

    async def test_only_creator_assigns(self, memory_services):
        task_service, _, _ = memory_services
        task = await task_service.create_task("任务", "alice", assigned_to="bob")
        with pytest.raises(PermissionDeniedError):
            await task_service.assign_task(task.task_id, "bob2", "bob")

    async def test_done_cannot_be_reassigned(self, memory_services):
        task_service, status_service, _ = memory_services
        task = await task_service.create_task("任务", "alice", assigned_to="alice")
        for status in ("ready", "in_progress", "review", "done"):
            await status_service.change_status(task.task_id, status, "alice")

        with pytest.raises(ImmutableStateError):
            await task_service.assign_task(task.task_id, "bob", "alice")

    async def test_missing_task(self, memory_services):
        task_service, _, _ = memory_services
        with pytest.raises(TaskNotFoundError):
            await task_service.assign_task("01JNOTEXIST000000000000000", "bob", "alice")
