"""只读投影计算 -- 统计、进度、最近变更

纯函数，不做 I/O；now 由调用方传入以保证同一次计算内时间一致。
"""

from datetime import datetime

from .models.enums import PROGRESS_SEQUENCE, TaskStatus
from .models.stats import RecentStatusChange, StatusStatistics
from .models.task import Task
from .timing import current_status_duration, total_recorded_duration


def compute_statistics(task: Task, now: datetime) -> StatusStatistics:
    """汇总任务的状态统计

    status_breakdown 先按 from_status 累加历史 duration，再计入当前状态的实时停留时间。
    """
    time_in_current = current_status_duration(task, now)

    breakdown: dict[TaskStatus, int] = {}
    for record in task.status_history:
        breakdown[record.from_status] = breakdown.get(record.from_status, 0) + record.duration
    breakdown[task.status] = breakdown.get(task.status, 0) + time_in_current

    return StatusStatistics(
        total_changes=len(task.status_history),
        current_status=task.status,
        time_in_current_status=time_in_current,
        total_time=total_recorded_duration(task),
        status_breakdown=breakdown,
    )


def progress_for_status(status: TaskStatus) -> int:
    """状态在进度序列中的百分比（不在序列中返回 0）"""
    if status not in PROGRESS_SEQUENCE:
        return 0
    index = PROGRESS_SEQUENCE.index(status)
    return index * 100 // (len(PROGRESS_SEQUENCE) - 1)


def compute_progress(task: Task) -> int:
    """任务进度百分比

    blocked 时按被阻塞前的状态（最近一条记录的 from_status）计算，无历史时视为 pending。
    """
    status = task.status
    if status == TaskStatus.BLOCKED:
        last = task.last_change
        status = last.from_status if last is not None else TaskStatus.PENDING
    return progress_for_status(status)


def flatten_recent_changes(tasks: list[Task], limit: int) -> list[RecentStatusChange]:
    """展开多个任务的状态历史，按 changed_at 倒序截取前 limit 条"""
    changes = [
        RecentStatusChange(
            task_id=task.task_id,
            task_title=task.title,
            record_id=record.record_id,
            from_status=record.from_status,
            to_status=record.to_status,
            changed_by=record.changed_by,
            changed_at=record.changed_at,
            reason=record.reason,
            duration=record.duration,
        )
        for task in tasks
        for record in task.status_history
    ]
    changes.sort(key=lambda c: c.changed_at, reverse=True)
    return changes[: max(0, limit)]
