"""TaskStore SQLite 实现

tasks 表保存任务当前状态（status_history 的物化结果）。
状态更新必须通过 transaction 模块与历史记录同事务提交，此处仅提供数据库操作。
"""

from datetime import datetime

import aiosqlite

from ..models.enums import TaskStatus
from ..models.task import Task

_COLUMNS = (
    "task_id, title, description, created_by, assigned_to, priority, deadline, "
    "status, started_at, completed_at, created_at, updated_at, version"
)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(self, task: Task) -> None:
        """创建任务记录（不自动提交）"""
        await self._conn.execute(
            f"""
            INSERT INTO tasks ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.task_id,
                task.title,
                task.description,
                task.created_by,
                task.assigned_to,
                task.priority.value,
                _iso(task.deadline),
                task.status.value,
                _iso(task.started_at),
                _iso(task.completed_at),
                task.created_at.isoformat(),
                task.updated_at.isoformat(),
                task.version,
            ),
        )

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务（不含 status_history）"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(
        self,
        user_id: str | None = None,
        status: TaskStatus | str | None = None,
    ) -> list[Task]:
        """查询任务列表，可按参与用户和状态筛选，按 updated_at 倒序"""
        clauses: list[str] = []
        params: list[str] = []
        if user_id:
            clauses.append("(created_by = ? OR assigned_to = ?)")
            params += [user_id, user_id]
        if status:
            clauses.append("status = ?")
            params.append(str(status))

        sql = f"SELECT {_COLUMNS} FROM tasks"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY updated_at DESC, task_id DESC"

        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def update_task(self, task: Task, expected_version: int) -> bool:
        """按版本号条件更新任务（不自动提交）

        Returns:
            True 如果更新成功；False 表示版本已变化（并发冲突）或任务不存在
        """
        cursor = await self._conn.execute(
            """
            UPDATE tasks
            SET title = ?, description = ?, assigned_to = ?, priority = ?,
                deadline = ?, status = ?, started_at = ?, completed_at = ?,
                updated_at = ?, version = ?
            WHERE task_id = ? AND version = ?
            """,
            (
                task.title,
                task.description,
                task.assigned_to,
                task.priority.value,
                _iso(task.deadline),
                task.status.value,
                _iso(task.started_at),
                _iso(task.completed_at),
                task.updated_at.isoformat(),
                task.version,
                task.task_id,
                expected_version,
            ),
        )
        return cursor.rowcount == 1

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row[0],
            title=row[1],
            description=row[2],
            created_by=row[3],
            assigned_to=row[4],
            priority=row[5],
            deadline=_parse(row[6]),
            status=row[7],
            started_at=_parse(row[8]),
            completed_at=_parse(row[9]),
            created_at=datetime.fromisoformat(row[10]),
            updated_at=datetime.fromisoformat(row[11]),
            version=row[12],
        )
