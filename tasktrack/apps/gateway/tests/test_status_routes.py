"""任务 / 状态路由测试

测试内容：
1. POST /api/tasks 创建任务 + GET 详情 / 列表
2. POST /api/tasks/{id}/status 成功与各类错误码
3. 指派路由
4. 历史 / 统计 / 进度 / 可用流转 / 最近变更查询
"""

import pytest_asyncio
from httpx import AsyncClient

MISSING_ID = "01JNOTEXIST000000000000000"


async def _create(client: AsyncClient, **overrides) -> dict:
    body = {
        "title": "上线检查清单",
        "created_by": "creator",
        "assigned_to": "assignee",
    }
    body.update(overrides)
    resp = await client.post("/api/tasks", json=body)
    assert resp.status_code == 201
    return resp.json()


async def _change(client: AsyncClient, task_id: str, status: str, user: str, reason=None):
    body = {"status": status, "acting_user": user}
    if reason is not None:
        body["reason"] = reason
    return await client.post(f"/api/tasks/{task_id}/status", json=body)


@pytest_asyncio.fixture
async def task(client: AsyncClient) -> dict:
    return await _create(client)


class TestTaskRoutes:
    """任务路由"""

    async def test_create_task(self, client: AsyncClient):
        data = await _create(client, priority="high")
        assert data["status"] == "pending"
        assert data["status_history"] == []
        assert data["priority"] == "high"
        assert data["version"] == 0
        assert len(data["task_id"]) == 26

    async def test_create_validation(self, client: AsyncClient):
        resp = await client.post("/api/tasks", json={"title": "", "created_by": "a"})
        assert resp.status_code == 422

    async def test_get_task(self, client: AsyncClient, task: dict):
        resp = await client.get(f"/api/tasks/{task['task_id']}")
        assert resp.status_code == 200
        assert resp.json()["title"] == "上线检查清单"

    async def test_get_missing_task(self, client: AsyncClient):
        resp = await client.get(f"/api/tasks/{MISSING_ID}")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "TASK_NOT_FOUND"

    async def test_list_tasks(self, client: AsyncClient, task: dict):
        await _create(client, title="别人的任务", created_by="x", assigned_to="y")
        resp = await client.get("/api/tasks", params={"user_id": "assignee"})
        assert resp.status_code == 200
        tasks = resp.json()["tasks"]
        assert [t["task_id"] for t in tasks] == [task["task_id"]]

        resp = await client.get(
            "/api/tasks", params={"user_id": "assignee", "status": "ready"}
        )
        assert resp.json()["tasks"] == []

    async def test_assign(self, client: AsyncClient, task: dict):
        resp = await client.post(
            f"/api/tasks/{task['task_id']}/assign",
            json={"assigned_to": "carol", "acting_user": "creator"},
        )
        assert resp.status_code == 200
        assert resp.json()["assigned_to"] == "carol"

    async def test_assign_forbidden(self, client: AsyncClient, task: dict):
        resp = await client.post(
            f"/api/tasks/{task['task_id']}/assign",
            json={"assigned_to": "carol", "acting_user": "assignee"},
        )
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "PERMISSION_DENIED"


class TestChangeStatusRoute:
    """状态变更路由"""

    async def test_success(self, client: AsyncClient, task: dict):
        resp = await _change(client, task["task_id"], "ready", "creator")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ready"
        assert data["status_history"][0]["from_status"] == "pending"
        assert data["status_history"][0]["reason"] is None

    async def test_not_found(self, client: AsyncClient):
        resp = await _change(client, MISSING_ID, "ready", "creator")
        assert resp.status_code == 404
        assert resp.json()["error"]["message"] == (
            f"Task with id {MISSING_ID} does not exist"
        )

    async def test_invalid_transition(self, client: AsyncClient, task: dict):
        resp = await _change(client, task["task_id"], "done", "creator")
        assert resp.status_code == 409
        error = resp.json()["error"]
        assert error["code"] == "INVALID_TRANSITION"
        assert "Valid transitions: ready" in error["message"]

    async def test_unknown_status(self, client: AsyncClient, task: dict):
        resp = await _change(client, task["task_id"], "archived", "creator")
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "INVALID_TRANSITION"

    async def test_permission_denied(self, client: AsyncClient, task: dict):
        await _change(client, task["task_id"], "ready", "creator")
        resp = await _change(client, task["task_id"], "in_progress", "creator")
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "PERMISSION_DENIED"

    async def test_missing_reason(self, client: AsyncClient, task: dict):
        await _change(client, task["task_id"], "ready", "creator")
        resp = await _change(client, task["task_id"], "blocked", "assignee")
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "MISSING_REASON"

    async def test_reason_too_long(self, client: AsyncClient, task: dict):
        await _change(client, task["task_id"], "ready", "creator")
        resp = await _change(client, task["task_id"], "blocked", "assignee", "x" * 501)
        assert resp.status_code == 422

    async def test_immutable(self, client: AsyncClient):
        task = await _create(client, assigned_to="creator")
        for status in ("ready", "in_progress", "review", "done"):
            resp = await _change(client, task["task_id"], status, "creator")
            assert resp.status_code == 200
        resp = await _change(client, task["task_id"], "review", "creator")
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "IMMUTABLE_STATE"


class TestReadRoutes:
    """只读查询路由"""

    async def test_history(self, client: AsyncClient, task: dict):
        await _change(client, task["task_id"], "ready", "creator")
        await _change(client, task["task_id"], "blocked", "assignee", "等待确认")

        resp = await client.get(f"/api/tasks/{task['task_id']}/history")
        assert resp.status_code == 200
        history = resp.json()["history"]
        assert [h["to_status"] for h in history] == ["ready", "blocked"]
        assert history[1]["reason"] == "等待确认"

    async def test_history_not_found(self, client: AsyncClient):
        resp = await client.get(f"/api/tasks/{MISSING_ID}/history")
        assert resp.status_code == 404

    async def test_statistics(self, client: AsyncClient, task: dict):
        await _change(client, task["task_id"], "ready", "creator")
        resp = await client.get(f"/api/tasks/{task['task_id']}/statistics")
        assert resp.status_code == 200
        data = resp.json()
        assert data["total_changes"] == 1
        assert data["current_status"] == "ready"
        assert set(data["status_breakdown"]) == {"pending", "ready"}

    async def test_progress(self, client: AsyncClient, task: dict):
        await _change(client, task["task_id"], "ready", "creator")
        await _change(client, task["task_id"], "in_progress", "assignee")
        await _change(client, task["task_id"], "blocked", "assignee", "卡住了")

        resp = await client.get(f"/api/tasks/{task['task_id']}/progress")
        assert resp.json() == {"task_id": task["task_id"], "progress": 50}

    async def test_transitions(self, client: AsyncClient, task: dict):
        await _change(client, task["task_id"], "ready", "creator")
        resp = await client.get(
            f"/api/tasks/{task['task_id']}/transitions",
            params={"acting_user": "creator"},
        )
        assert resp.status_code == 200
        assert resp.json()["transitions"] == ["blocked"]

    async def test_recent_changes(self, client: AsyncClient, task: dict):
        await _change(client, task["task_id"], "ready", "creator")
        await _change(client, task["task_id"], "in_progress", "assignee")

        resp = await client.get(
            "/api/users/assignee/status-changes", params={"limit": 1}
        )
        assert resp.status_code == 200
        changes = resp.json()["changes"]
        assert len(changes) == 1
        assert changes[0]["to_status"] == "in_progress"
        assert changes[0]["task_title"] == "上线检查清单"

    async def test_recent_changes_limit_validated(self, client: AsyncClient):
        resp = await client.get("/api/users/a/status-changes", params={"limit": 0})
        assert resp.status_code == 422
