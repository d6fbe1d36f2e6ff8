"""TaskLockRegistry -- 任务级 asyncio 锁注册表

同一 task_id 的读-校验-写序列在锁内执行；不同任务互不影响。
由应用在 lifespan 中创建一份，注入给服务实例共享。

锁按持有者计数：持有或等待同一锁的协程都计入，最后一个退出时移除条目，
注册表只保留正在使用的锁。
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class _TaskLock:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.holders = 0


class TaskLockRegistry:
    """按 task_id 分配 asyncio.Lock"""

    def __init__(self) -> None:
        self._locks: dict[str, _TaskLock] = {}

    @asynccontextmanager
    async def hold(self, task_id: str) -> AsyncIterator[None]:
        """持有 task 级别锁直到退出上下文，不存在时创建"""
        entry = self._locks.get(task_id)
        if entry is None:
            entry = self._locks[task_id] = _TaskLock()
        entry.holders += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.holders -= 1
            if entry.holders == 0:
                self._locks.pop(task_id, None)

    def __len__(self) -> int:
        return len(self._locks)
