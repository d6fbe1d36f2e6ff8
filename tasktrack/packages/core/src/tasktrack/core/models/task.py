"""Task Domain Model

status_history 是 append-only 的审计记录，
所有状态更新必须通过 StatusTrackingService.change_status 触发。
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from ulid import ULID

from .enums import TaskPriority, TaskStatus


class StatusChangeRecord(BaseModel):
    """状态变更记录 -- 创建后不可修改

    duration 为任务在 from_status 中停留的毫秒数：
    changed_at 减去上一条记录的 changed_at（首条记录减去 task.created_at）。
    """

    model_config = ConfigDict(frozen=True)

    record_id: str = Field(
        default_factory=lambda: str(ULID()),
        description="唯一标识，ULID 格式",
    )
    from_status: TaskStatus = Field(description="变更前状态")
    to_status: TaskStatus = Field(description="变更后状态")
    changed_by: str = Field(description="触发变更的用户 ID")
    changed_at: datetime = Field(description="变更时间戳")
    reason: str | None = Field(default=None, description="变更原因，blocked 时必填")
    duration: int = Field(default=0, ge=0, description="在 from_status 停留的毫秒数")


class Task(BaseModel):
    """Task 数据模型

    created_by / created_at 创建后不可变；
    started_at / completed_at 只在首次进入对应状态时写入；
    version 为乐观并发控制的修订号，每次保存递增。
    """

    task_id: str = Field(description="唯一标识，ULID 格式")
    title: str = Field(min_length=1, max_length=200, description="任务标题")
    description: str = Field(default="", max_length=1000, description="任务描述")
    created_by: str = Field(description="创建者用户 ID")
    assigned_to: str | None = Field(default=None, description="负责人用户 ID")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")
    deadline: datetime | None = Field(default=None, description="截止时间")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    status_history: list[StatusChangeRecord] = Field(
        default_factory=list,
        description="状态变更历史（按时间正序）",
    )
    started_at: datetime | None = Field(default=None, description="首次进入 in_progress 的时间")
    completed_at: datetime | None = Field(default=None, description="首次进入 done 的时间")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")
    version: int = Field(default=0, ge=0, description="修订号")

    def involves(self, user_id: str) -> bool:
        """用户是否为任务的创建者或负责人"""
        return user_id in (self.created_by, self.assigned_to)

    @property
    def last_change(self) -> StatusChangeRecord | None:
        """最近一条状态变更记录"""
        return self.status_history[-1] if self.status_history else None
