"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、并发冲突重试次数、最近变更默认条数等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKTRACK_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKTRACK_DB_PATH",
        str(_get_base_dir() / "sqlite" / "tasktrack.db"),
    )


# 乐观并发冲突时整体重试 change_status 的最大次数
MAX_CONFLICT_RETRIES: int = int(
    os.environ.get("TASKTRACK_MAX_CONFLICT_RETRIES", "3")
)

# 最近状态变更查询的默认条数
RECENT_CHANGES_LIMIT: int = int(
    os.environ.get("TASKTRACK_RECENT_CHANGES_LIMIT", "10")
)

# 变更原因最大长度
REASON_MAX_LENGTH: int = 500
