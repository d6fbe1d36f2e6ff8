"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 与服务实例

实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Request
from tasktrack.core.store import StoreGroup

from .services.status_service import StatusTrackingService
from .services.task_service import TaskService


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_status_service(request: Request) -> StatusTrackingService:
    """从 app.state 获取 StatusTrackingService 实例"""
    return request.app.state.status_service


def get_task_service(request: Request) -> TaskService:
    """从 app.state 获取 TaskService 实例"""
    return request.app.state.task_service
