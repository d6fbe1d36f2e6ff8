"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性与 schema 可用性。
"""

import structlog
from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse
from tasktrack.core.store import StoreGroup

from ..deps import get_store_group

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(store_group: StoreGroup = Depends(get_store_group)):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. sqlite: 数据库连通性
    2. schema: tasks / status_history 表存在
    """
    checks = {}
    all_ok = True

    # 1. SQLite 连通性检查
    try:
        cursor = await store_group.conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
    except Exception as e:
        log.warning("ready_check_sqlite_failed", error_type=type(e).__name__)
        checks["sqlite"] = "unavailable"
        all_ok = False

    # 2. Schema 检查
    if all_ok:
        try:
            cursor = await store_group.conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' "
                "AND name IN ('tasks', 'status_history')"
            )
            rows = await cursor.fetchall()
            checks["schema"] = "ok" if len(rows) == 2 else "missing_tables"
            all_ok = len(rows) == 2
        except Exception as e:
            log.warning("ready_check_schema_failed", error_type=type(e).__name__)
            checks["schema"] = "unavailable"
            all_ok = False
    else:
        checks["schema"] = "skipped"

    status_code = 200 if all_ok else 503
    status_text = "ready" if all_ok else "not_ready"

    return JSONResponse(
        status_code=status_code,
        content={
            "status": status_text,
            "checks": checks,
        },
    )
