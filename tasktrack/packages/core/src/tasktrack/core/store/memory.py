"""TaskRepository 的内存实现 -- 用于测试与嵌入式场景

读写均返回/保存深拷贝，调用方未保存的修改对其他读者不可见。
"""

from ..errors import TaskVersionConflictError
from ..models.enums import TaskStatus
from ..models.task import StatusChangeRecord, Task


class InMemoryTaskRepository:
    """TaskRepository 的内存实现"""

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}

    async def create_task(self, task: Task) -> None:
        if task.task_id in self._tasks:
            raise ValueError(f"Task {task.task_id} already exists")
        self._tasks[task.task_id] = task.model_copy(deep=True)

    async def get_task(self, task_id: str) -> Task | None:
        task = self._tasks.get(task_id)
        return task.model_copy(deep=True) if task is not None else None

    async def list_tasks_for_user(
        self,
        user_id: str,
        status: TaskStatus | None = None,
    ) -> list[Task]:
        tasks = [
            t
            for t in self._tasks.values()
            if t.involves(user_id) and (status is None or t.status == status)
        ]
        tasks.sort(key=lambda t: (t.updated_at, t.task_id), reverse=True)
        return [t.model_copy(deep=True) for t in tasks]

    async def save_task(
        self,
        task: Task,
        expected_version: int,
        record: StatusChangeRecord | None = None,
    ) -> None:
        stored = self._tasks.get(task.task_id)
        if stored is None or stored.version != expected_version:
            raise TaskVersionConflictError(task.task_id, expected_version)
        if record is not None and task.last_change != record:
            raise ValueError("record must be the last entry of task.status_history")
        self._tasks[task.task_id] = task.model_copy(deep=True)
