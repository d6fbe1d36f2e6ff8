"""状态跟踪异常体系

所有校验失败同步抛给调用方，且不产生任何部分写入。
code 为稳定的错误码，供传输层映射为对外错误。
"""

from .models.enums import TaskStatus


class StatusTrackingError(Exception):
    """状态跟踪基础异常"""

    code = "STATUS_TRACKING_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TaskNotFoundError(StatusTrackingError):
    """任务不存在"""

    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist")
        self.task_id = task_id


class InvalidTransitionError(StatusTrackingError):
    """请求的流转不在合法流转表中"""

    code = "INVALID_TRANSITION"

    def __init__(
        self,
        from_status: TaskStatus,
        to_status: str,
        valid_next: list[TaskStatus],
    ) -> None:
        allowed = ", ".join(s.value for s in valid_next) or "none"
        super().__init__(
            f"Invalid status transition from {from_status.value} to {to_status}. "
            f"Valid transitions: {allowed}"
        )
        self.from_status = from_status
        self.to_status = to_status
        self.valid_next = valid_next


class ImmutableStateError(StatusTrackingError):
    """任务已在终态，不允许任何修改"""

    code = "IMMUTABLE_STATE"

    def __init__(self, current_status: TaskStatus, message: str | None = None) -> None:
        super().__init__(
            message
            or f"Cannot change status of completed tasks (current: {current_status.value})"
        )
        self.current_status = current_status


class PermissionDeniedError(StatusTrackingError):
    """操作者与任务的关系不满足要求"""

    code = "PERMISSION_DENIED"


class MissingReasonError(StatusTrackingError):
    """进入 blocked 时未提供原因"""

    code = "MISSING_REASON"


class TaskVersionConflictError(StatusTrackingError):
    """乐观并发冲突：保存时任务已被其他写入修改"""

    code = "VERSION_CONFLICT"

    def __init__(self, task_id: str, expected_version: int) -> None:
        super().__init__(
            f"Task {task_id} was modified concurrently (expected version {expected_version})"
        )
        self.task_id = task_id
        self.expected_version = expected_version
