"""HistoryStore SQLite 实现

status_history 表 append-only：只允许插入，不允许更新或删除。
seq 同一 task 内严格单调递增（从 1 开始）。
"""

from datetime import datetime

import aiosqlite

from ..models.enums import TaskStatus
from ..models.task import StatusChangeRecord

_COLUMNS = (
    "record_id, task_id, seq, from_status, to_status, changed_by, "
    "changed_at, reason, duration_ms"
)


class SqliteHistoryStore:
    """HistoryStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def append_record(
        self,
        task_id: str,
        seq: int,
        record: StatusChangeRecord,
    ) -> None:
        """追加状态变更记录（append-only）

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        await self._conn.execute(
            f"""
            INSERT INTO status_history ({_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.record_id,
                task_id,
                seq,
                record.from_status.value,
                record.to_status.value,
                record.changed_by,
                record.changed_at.isoformat(),
                record.reason,
                record.duration,
            ),
        )

    async def get_history_for_task(self, task_id: str) -> list[StatusChangeRecord]:
        """查询指定任务的全部记录，按 seq 正序"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM status_history WHERE task_id = ? ORDER BY seq ASC",
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_record(row) for row in rows]

    async def get_history_for_tasks(
        self,
        task_ids: list[str],
    ) -> dict[str, list[StatusChangeRecord]]:
        """批量查询多个任务的记录，返回 task_id -> 记录列表（seq 正序）"""
        history: dict[str, list[StatusChangeRecord]] = {task_id: [] for task_id in task_ids}
        if not task_ids:
            return history

        placeholders = ", ".join("?" for _ in task_ids)
        cursor = await self._conn.execute(
            f"""
            SELECT {_COLUMNS} FROM status_history
            WHERE task_id IN ({placeholders})
            ORDER BY task_id, seq ASC
            """,
            task_ids,
        )
        rows = await cursor.fetchall()
        for row in rows:
            history[row[1]].append(self._row_to_record(row))
        return history

    @staticmethod
    def _row_to_record(row: aiosqlite.Row) -> StatusChangeRecord:
        """将数据库行转换为 StatusChangeRecord 模型"""
        return StatusChangeRecord(
            record_id=row[0],
            from_status=TaskStatus(row[3]),
            to_status=TaskStatus(row[4]),
            changed_by=row[5],
            changed_at=datetime.fromisoformat(row[6]),
            reason=row[7],
            duration=row[8],
        )
