"""停留时长计算与文本格式化

所有时长单位为毫秒。
"""

from datetime import datetime, timedelta

from .models.task import Task

_ONE_MS = timedelta(milliseconds=1)


def elapsed_ms(since: datetime, now: datetime) -> int:
    """计算两个时间点之间的毫秒数（时钟回拨时取 0）"""
    return max(0, (now - since) // _ONE_MS)


def status_entered_at(task: Task) -> datetime:
    """当前状态的进入时间：最近一条记录的 changed_at，无记录时为 created_at"""
    last = task.last_change
    return last.changed_at if last is not None else task.created_at


def current_status_duration(task: Task, now: datetime) -> int:
    """任务在当前状态已停留的毫秒数"""
    return elapsed_ms(status_entered_at(task), now)


def total_recorded_duration(task: Task) -> int:
    """历史记录 duration 总和"""
    return sum(record.duration for record in task.status_history)


def format_duration(milliseconds: int) -> str:
    """格式化时长：Xd Yh / Xh Ym / Xm"""
    if not milliseconds or milliseconds <= 0:
        return "0m"

    minutes = milliseconds // (1000 * 60)
    hours = minutes // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    return f"{minutes}m"


def format_status_history(task: Task, now: datetime) -> str:
    """纯文本状态历史（CLI 与日志使用）"""
    lines = [
        f"Status history - {task.title}",
        f"Task: {task.task_id}",
        f"Created by: {task.created_by} at {task.created_at.isoformat()}",
        "",
    ]

    if not task.status_history:
        lines.append("No status changes yet.")
    for record in task.status_history:
        lines.append(
            f"- {record.from_status.value} -> {record.to_status.value} "
            f"by {record.changed_by} at {record.changed_at.isoformat()}"
        )
        if record.duration:
            lines.append(f"  duration: {format_duration(record.duration)}")
        if record.reason:
            lines.append(f"  reason: {record.reason}")

    lines += [
        "",
        f"Current status: {task.status.value} "
        f"({format_duration(current_status_duration(task, now))})",
        f"Total recorded: {format_duration(total_recorded_duration(task))}",
        f"Status changes: {len(task.status_history)}",
    ]
    return "\n".join(lines)
