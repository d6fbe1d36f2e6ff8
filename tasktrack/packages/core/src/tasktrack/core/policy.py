"""Transition Policy -- 纯函数流转裁决

根据 (当前状态, 目标状态, 操作者与任务的关系, 原因) 给出允许/拒绝裁决。
无 I/O、无副作用，相同输入始终得到相同裁决。

裁决顺序：
1. 当前状态为终态 -> IMMUTABLE_STATE（与流转表无关）
2. 流转不在表中 -> INVALID_TRANSITION
3. 进入 in_progress 需为负责人 -> PERMISSION_DENIED
4. 进入 done 需为创建者 -> PERMISSION_DENIED
5. 进入 blocked 需提供原因 -> MISSING_REASON
"""

from enum import StrEnum

from pydantic import BaseModel, Field

from .errors import (
    ImmutableStateError,
    InvalidTransitionError,
    MissingReasonError,
    PermissionDeniedError,
    StatusTrackingError,
)
from .models.enums import (
    TERMINAL_STATES,
    TaskStatus,
    get_valid_next_statuses,
    validate_transition,
)
from .models.task import Task


class VerdictKind(StrEnum):
    """裁决类型"""

    ALLOWED = "allowed"
    INVALID_TRANSITION = "invalid_transition"
    IMMUTABLE_STATE = "immutable_state"
    PERMISSION_DENIED = "permission_denied"
    MISSING_REASON = "missing_reason"


class TransitionVerdict(BaseModel):
    """流转裁决结果"""

    kind: VerdictKind
    current_status: TaskStatus
    requested_status: str
    message: str = ""
    valid_next: list[TaskStatus] = Field(default_factory=list)

    @property
    def allowed(self) -> bool:
        return self.kind == VerdictKind.ALLOWED

    def to_error(self) -> StatusTrackingError:
        """将拒绝裁决转换为对应的类型化异常"""
        if self.kind == VerdictKind.IMMUTABLE_STATE:
            return ImmutableStateError(self.current_status, self.message)
        if self.kind == VerdictKind.INVALID_TRANSITION:
            return InvalidTransitionError(
                self.current_status, self.requested_status, self.valid_next
            )
        if self.kind == VerdictKind.PERMISSION_DENIED:
            return PermissionDeniedError(self.message)
        if self.kind == VerdictKind.MISSING_REASON:
            return MissingReasonError(self.message)
        raise ValueError("allowed verdict has no error")


def _has_reason(reason: str | None) -> bool:
    return bool(reason and reason.strip())


def evaluate_transition(
    task: Task,
    new_status: TaskStatus | str,
    acting_user: str,
    reason: str | None = None,
) -> TransitionVerdict:
    """评估一次状态流转

    Args:
        task: 任务快照
        new_status: 目标状态（未知字符串视为非法流转）
        acting_user: 操作者用户 ID
        reason: 变更原因

    Returns:
        TransitionVerdict
    """
    current = task.status
    valid_next = get_valid_next_statuses(current)
    requested = new_status.value if isinstance(new_status, TaskStatus) else str(new_status)

    def verdict(kind: VerdictKind, message: str = "") -> TransitionVerdict:
        return TransitionVerdict(
            kind=kind,
            current_status=current,
            requested_status=requested,
            message=message,
            valid_next=valid_next,
        )

    if current in TERMINAL_STATES:
        return verdict(
            VerdictKind.IMMUTABLE_STATE,
            f"Cannot change status of completed tasks "
            f"(current: {current.value}, requested: {requested})",
        )

    try:
        target = TaskStatus(requested)
    except ValueError:
        return verdict(VerdictKind.INVALID_TRANSITION)

    if not validate_transition(current, target):
        return verdict(VerdictKind.INVALID_TRANSITION)

    if target == TaskStatus.IN_PROGRESS and (
        task.assigned_to is None or task.assigned_to != acting_user
    ):
        return verdict(
            VerdictKind.PERMISSION_DENIED,
            f"Only the assigned user can start work on this task "
            f"({current.value} -> {target.value})",
        )

    if target == TaskStatus.DONE and task.created_by != acting_user:
        return verdict(
            VerdictKind.PERMISSION_DENIED,
            f"Only the task creator can mark task as done "
            f"({current.value} -> {target.value})",
        )

    if target == TaskStatus.BLOCKED and not _has_reason(reason):
        return verdict(
            VerdictKind.MISSING_REASON,
            f"Reason is required when blocking a task "
            f"({current.value} -> {target.value})",
        )

    return verdict(VerdictKind.ALLOWED)


def allowed_targets(task: Task, acting_user: str) -> list[TaskStatus]:
    """操作者当前可发起的目标状态

    进入 blocked 只差原因时也计入，由调用方补充原因。
    """
    targets = []
    for target in get_valid_next_statuses(task.status):
        result = evaluate_transition(task, target, acting_user)
        if result.kind in (VerdictKind.ALLOWED, VerdictKind.MISSING_REASON):
            targets.append(target)
    return targets
