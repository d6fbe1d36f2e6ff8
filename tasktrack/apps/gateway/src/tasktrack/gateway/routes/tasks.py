"""任务路由

POST /api/tasks: 创建任务（pending，历史为空）。
GET /api/tasks: 按用户查询任务列表，支持 status 筛选。
GET /api/tasks/{task_id}: 任务详情，含完整状态历史。
POST /api/tasks/{task_id}/assign: 重新指派负责人（仅创建者）。
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse
from tasktrack.core.errors import StatusTrackingError, TaskNotFoundError
from tasktrack.core.models import Task, TaskPriority, TaskStatus

from ..deps import get_task_service
from ..errors import error_response

router = APIRouter()


class CreateTaskRequest(BaseModel):
    """创建任务请求体"""

    title: str = Field(min_length=1, max_length=200, description="任务标题")
    created_by: str = Field(min_length=1, description="创建者用户 ID")
    assigned_to: str | None = Field(default=None, description="负责人用户 ID")
    description: str = Field(default="", max_length=1000, description="任务描述")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")
    deadline: datetime | None = Field(default=None, description="截止时间")


class AssignTaskRequest(BaseModel):
    """指派请求体"""

    assigned_to: str = Field(min_length=1, description="新负责人用户 ID")
    acting_user: str = Field(min_length=1, description="操作者用户 ID")


class TaskSummary(BaseModel):
    """任务摘要（列表项）"""

    task_id: str
    title: str
    status: TaskStatus
    priority: TaskPriority
    created_by: str
    assigned_to: str | None
    created_at: datetime
    updated_at: datetime


class TaskListResponse(BaseModel):
    """任务列表响应"""

    tasks: list[TaskSummary]


def task_summary(task: Task) -> TaskSummary:
    return TaskSummary(
        task_id=task.task_id,
        title=task.title,
        status=task.status,
        priority=task.priority,
        created_by=task.created_by,
        assigned_to=task.assigned_to,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


@router.post("/api/tasks", status_code=201)
async def create_task(
    body: CreateTaskRequest,
    service=Depends(get_task_service),
):
    """创建任务，返回 201 + 完整任务"""
    task = await service.create_task(
        title=body.title,
        created_by=body.created_by,
        assigned_to=body.assigned_to,
        description=body.description,
        priority=body.priority,
        deadline=body.deadline,
    )
    return JSONResponse(status_code=201, content=task.model_dump(mode="json"))


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(
    user_id: str = Query(description="参与用户（创建者或负责人）"),
    status: TaskStatus | None = Query(default=None, description="按状态筛选"),
    service=Depends(get_task_service),
):
    """查询用户相关任务，按 updated_at 倒序"""
    tasks = await service.list_tasks_for_user(user_id, status)
    return TaskListResponse(tasks=[task_summary(t) for t in tasks])


@router.get("/api/tasks/{task_id}")
async def get_task_detail(
    task_id: str,
    service=Depends(get_task_service),
):
    """查询任务详情，包含状态历史"""
    task = await service.get_task(task_id)
    if task is None:
        return error_response(TaskNotFoundError(task_id))
    return task.model_dump(mode="json")


@router.post("/api/tasks/{task_id}/assign")
async def assign_task(
    task_id: str,
    body: AssignTaskRequest,
    service=Depends(get_task_service),
):
    """重新指派负责人

    - 200: 指派成功
    - 403: 操作者不是创建者
    - 404: 任务不存在
    - 409: 任务已完成或并发冲突
    """
    try:
        task = await service.assign_task(task_id, body.assigned_to, body.acting_user)
    except StatusTrackingError as e:
        return error_response(e)
    return task.model_dump(mode="json")
