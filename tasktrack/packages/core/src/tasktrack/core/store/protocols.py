"""Store Protocol 接口定义

状态跟踪引擎只依赖 TaskRepository 的四个操作（get / save / find / create），
使用 Python Protocol 实现结构化子类型（duck typing），
SQLite 实现与内存实现均可注入。
"""

from typing import Protocol

from ..models.enums import TaskStatus
from ..models.task import StatusChangeRecord, Task


class TaskRepository(Protocol):
    """Task 记录访问接口"""

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务（含完整 status_history）"""
        ...

    async def list_tasks_for_user(
        self,
        user_id: str,
        status: TaskStatus | None = None,
    ) -> list[Task]:
        """查询用户作为创建者或负责人的任务，按 updated_at 倒序"""
        ...

    async def save_task(
        self,
        task: Task,
        expected_version: int,
        record: StatusChangeRecord | None = None,
    ) -> None:
        """原子保存任务及（可选的）新增状态变更记录

        Raises:
            TaskVersionConflictError: 存储中的版本号不等于 expected_version
        """
        ...
