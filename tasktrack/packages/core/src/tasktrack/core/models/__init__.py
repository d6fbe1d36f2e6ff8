"""tasktrack Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    PROGRESS_SEQUENCE,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    TaskPriority,
    TaskStatus,
    get_valid_next_statuses,
    validate_transition,
)
from .stats import RecentStatusChange, StatusStatistics
from .task import StatusChangeRecord, Task

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskPriority",
    # 状态机
    "VALID_TRANSITIONS",
    "TERMINAL_STATES",
    "PROGRESS_SEQUENCE",
    "validate_transition",
    "get_valid_next_statuses",
    # Task
    "Task",
    "StatusChangeRecord",
    # 只读投影
    "StatusStatistics",
    "RecentStatusChange",
]
