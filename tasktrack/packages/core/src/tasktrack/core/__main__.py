"""CLI 入口模块 -- python -m tasktrack.core <command>

支持的命令：
  history <task_id>     打印任务状态历史
  stats <task_id>       打印任务状态统计
  rebuild-projections   从 status_history 表重建 tasks 表派生字段
"""

import asyncio
import sys
from datetime import UTC, datetime

from .config import get_db_path

_USAGE = """用法: python -m tasktrack.core <command>
命令:
  history <task_id>     打印任务状态历史
  stats <task_id>       打印任务状态统计
  rebuild-projections   从 status_history 表重建 tasks 表派生字段"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "rebuild-projections":
        asyncio.run(rebuild_projections())
    elif command in ("history", "stats"):
        if len(sys.argv) < 3:
            print(f"缺少参数: {command} <task_id>")
            sys.exit(1)
        found = asyncio.run(show_task(command, sys.argv[2]))
        if not found:
            print(f"任务不存在: {sys.argv[2]}")
            sys.exit(1)
    else:
        print(f"未知命令: {command}")
        print("可用命令: history, stats, rebuild-projections")
        sys.exit(1)


async def show_task(command: str, task_id: str) -> bool:
    """打印单个任务的历史或统计，任务不存在返回 False"""
    from .metrics import compute_progress, compute_statistics
    from .store import create_store_group
    from .timing import format_duration, format_status_history

    store_group = await create_store_group(get_db_path())
    try:
        task = await store_group.repository.get_task(task_id)
    finally:
        await store_group.conn.close()

    if task is None:
        return False

    now = datetime.now(UTC)
    if command == "history":
        print(format_status_history(task, now))
        return True

    stats = compute_statistics(task, now)
    print(f"任务: {task.task_id} ({task.title})")
    print(f"当前状态: {stats.current_status.value}")
    print(f"进度: {compute_progress(task)}%")
    print(f"变更次数: {stats.total_changes}")
    print(f"当前状态停留: {format_duration(stats.time_in_current_status)}")
    print(f"历史总时长: {format_duration(stats.total_time)}")
    for status, duration in stats.status_breakdown.items():
        print(f"  {status.value}: {format_duration(duration)}")
    return True


async def rebuild_projections() -> None:
    """执行 Projection 重建"""
    from .projection import rebuild_all
    from .store import create_store_group

    db_path = get_db_path()

    print(f"数据库路径: {db_path}")
    print("开始重建 Projection...")

    store_group = await create_store_group(db_path)

    try:
        repaired = await rebuild_all(
            store_group.conn,
            store_group.task_store,
            store_group.history_store,
        )
        print(f"重建完成，修复 {repaired} 个任务")
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
