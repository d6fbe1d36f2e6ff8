"""任务状态路由

POST /api/tasks/{task_id}/status: 变更任务状态。
- 200: 变更成功，返回更新后的任务
- 403: 操作者权限不足
- 404: 任务不存在
- 409: 非法流转 / 任务已完成 / 并发冲突
- 422: 进入 blocked 未提供原因

GET /api/tasks/{task_id}/history | statistics | progress | transitions: 只读投影。
GET /api/users/{user_id}/status-changes: 用户相关任务的最近状态变更。
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from tasktrack.core.config import REASON_MAX_LENGTH, RECENT_CHANGES_LIMIT
from tasktrack.core.errors import StatusTrackingError
from tasktrack.core.models import (
    RecentStatusChange,
    StatusChangeRecord,
    StatusStatistics,
    TaskStatus,
)

from ..deps import get_status_service
from ..errors import error_response

router = APIRouter()


class ChangeStatusRequest(BaseModel):
    """状态变更请求体"""

    status: str = Field(description="目标状态")
    acting_user: str = Field(min_length=1, description="操作者用户 ID")
    reason: str | None = Field(
        default=None,
        max_length=REASON_MAX_LENGTH,
        description="变更原因，进入 blocked 时必填",
    )


class HistoryResponse(BaseModel):
    task_id: str
    history: list[StatusChangeRecord]


class ProgressResponse(BaseModel):
    task_id: str
    progress: int


class TransitionsResponse(BaseModel):
    task_id: str
    acting_user: str
    transitions: list[TaskStatus]


class RecentChangesResponse(BaseModel):
    user_id: str
    changes: list[RecentStatusChange]


@router.post("/api/tasks/{task_id}/status")
async def change_status(
    task_id: str,
    body: ChangeStatusRequest,
    service=Depends(get_status_service),
):
    """变更任务状态"""
    try:
        task = await service.change_status(
            task_id,
            body.status,
            body.acting_user,
            body.reason,
        )
    except StatusTrackingError as e:
        return error_response(e)
    return task.model_dump(mode="json")


@router.get("/api/tasks/{task_id}/history", response_model=HistoryResponse)
async def get_history(task_id: str, service=Depends(get_status_service)):
    """状态变更历史（时间正序）"""
    try:
        history = await service.get_status_history(task_id)
    except StatusTrackingError as e:
        return error_response(e)
    return HistoryResponse(task_id=task_id, history=history)


@router.get("/api/tasks/{task_id}/statistics", response_model=StatusStatistics)
async def get_statistics(task_id: str, service=Depends(get_status_service)):
    """状态统计"""
    try:
        return await service.get_status_statistics(task_id)
    except StatusTrackingError as e:
        return error_response(e)


@router.get("/api/tasks/{task_id}/progress", response_model=ProgressResponse)
async def get_progress(task_id: str, service=Depends(get_status_service)):
    """进度百分比"""
    try:
        progress = await service.get_task_progress(task_id)
    except StatusTrackingError as e:
        return error_response(e)
    return ProgressResponse(task_id=task_id, progress=progress)


@router.get("/api/tasks/{task_id}/transitions", response_model=TransitionsResponse)
async def get_transitions(
    task_id: str,
    acting_user: str = Query(description="操作者用户 ID"),
    service=Depends(get_status_service),
):
    """操作者当前可发起的目标状态"""
    try:
        transitions = await service.get_available_transitions(task_id, acting_user)
    except StatusTrackingError as e:
        return error_response(e)
    return TransitionsResponse(
        task_id=task_id,
        acting_user=acting_user,
        transitions=transitions,
    )


@router.get(
    "/api/users/{user_id}/status-changes",
    response_model=RecentChangesResponse,
)
async def get_recent_changes(
    user_id: str,
    limit: int = Query(default=RECENT_CHANGES_LIMIT, ge=1, le=100),
    service=Depends(get_status_service),
):
    """用户相关任务的最近状态变更"""
    changes = await service.get_recent_status_changes(user_id, limit)
    return RecentChangesResponse(user_id=user_id, changes=changes)
