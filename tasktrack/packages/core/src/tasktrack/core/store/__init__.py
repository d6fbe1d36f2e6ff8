"""tasktrack Core Store -- SQLite / 内存持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

from pathlib import Path

import aiosqlite

from .history_store import SqliteHistoryStore
from .memory import InMemoryTaskRepository
from .protocols import TaskRepository
from .repository import SqliteTaskRepository
from .sqlite_init import init_db
from .task_store import SqliteTaskStore
from .transaction import create_task_record, read_snapshot, save_task_with_history


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.task_store = SqliteTaskStore(conn)
        self.history_store = SqliteHistoryStore(conn)
        self.repository = SqliteTaskRepository(
            conn,
            self.task_store,
            self.history_store,
        )


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "TaskRepository",
    "SqliteTaskRepository",
    "InMemoryTaskRepository",
    "SqliteTaskStore",
    "SqliteHistoryStore",
    "init_db",
    "create_task_record",
    "read_snapshot",
    "save_task_with_history",
]
