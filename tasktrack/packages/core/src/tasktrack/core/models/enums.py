"""枚举定义 -- Task 状态机与优先级

包含 TaskStatus 状态机、TaskPriority 枚举，
以及 VALID_TRANSITIONS 合法流转映射、TERMINAL_STATES 终态集合
和 PROGRESS_SEQUENCE 进度序列。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态机"""

    PENDING = "pending"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    BLOCKED = "blocked"
    # 终态
    DONE = "done"


class TaskPriority(StrEnum):
    """任务优先级"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# 唯一合法的状态流转表（列表顺序即对外展示顺序）
# 注意：review -> ready、done -> review 均不合法
VALID_TRANSITIONS: dict[TaskStatus, list[TaskStatus]] = {
    TaskStatus.PENDING: [TaskStatus.READY],
    TaskStatus.READY: [TaskStatus.IN_PROGRESS, TaskStatus.BLOCKED],
    TaskStatus.IN_PROGRESS: [TaskStatus.REVIEW, TaskStatus.BLOCKED],
    TaskStatus.REVIEW: [TaskStatus.DONE, TaskStatus.IN_PROGRESS],
    TaskStatus.BLOCKED: [TaskStatus.READY, TaskStatus.IN_PROGRESS],
    # 终态不可再流转
    TaskStatus.DONE: [],
}

TERMINAL_STATES: set[TaskStatus] = {TaskStatus.DONE}

# 进度序列（不含 blocked），按序号映射为 0/25/50/75/100
PROGRESS_SEQUENCE: list[TaskStatus] = [
    TaskStatus.PENDING,
    TaskStatus.READY,
    TaskStatus.IN_PROGRESS,
    TaskStatus.REVIEW,
    TaskStatus.DONE,
]


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, [])
    return to_status in allowed


def get_valid_next_statuses(status: TaskStatus) -> list[TaskStatus]:
    """获取当前状态下所有合法的下一状态（按表内顺序）"""
    return list(VALID_TRANSITIONS.get(status, []))
