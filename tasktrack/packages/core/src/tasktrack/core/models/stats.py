"""只读投影模型 -- 状态统计与最近变更"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import TaskStatus


class StatusStatistics(BaseModel):
    """单个任务的状态统计

    total_time 仅累加已记录的 duration，不含当前状态的实时停留时间；
    status_breakdown 则额外计入当前状态的实时停留时间。
    """

    total_changes: int = Field(description="状态变更次数")
    current_status: TaskStatus = Field(description="当前状态")
    time_in_current_status: int = Field(description="当前状态停留毫秒数")
    total_time: int = Field(description="历史记录 duration 总和（毫秒）")
    status_breakdown: dict[TaskStatus, int] = Field(
        default_factory=dict,
        description="按状态汇总的停留毫秒数",
    )


class RecentStatusChange(BaseModel):
    """跨任务展开的状态变更摘要"""

    task_id: str
    task_title: str
    record_id: str
    from_status: TaskStatus
    to_status: TaskStatus
    changed_by: str
    changed_at: datetime
    reason: str | None = None
    duration: int = 0
