"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 服务实例初始化 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from tasktrack.core.config import get_db_path
from tasktrack.core.store import StoreGroup, create_store_group

from .middleware.logging_config import setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import health, status, tasks
from .services.status_service import StatusTrackingService
from .services.task_locks import TaskLockRegistry
from .services.task_service import TaskService

log = structlog.get_logger()


def init_services(app: FastAPI, store_group: StoreGroup) -> None:
    """基于 StoreGroup 初始化服务实例（两个服务共享同一份 task 级锁）"""
    locks = TaskLockRegistry()
    app.state.store_group = store_group
    app.state.task_locks = locks
    app.state.status_service = StatusTrackingService(
        store_group.repository,
        locks=locks,
    )
    app.state.task_service = TaskService(
        store_group.repository,
        locks=locks,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 和服务，关闭时清理连接"""
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    init_services(app, store_group)
    log.info("store_initialized", db_path=db_path)

    yield

    # 关闭：清理数据库连接
    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="tasktrack Gateway",
        version="0.1.0",
        description="任务状态跟踪 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()

    # 注册路由
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(status.router, tags=["status"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
