"""画布操作队列 - 按帧串行（或有限并发）执行异步任务"""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from typing import Dict, TypeVar

T = TypeVar("T")


class TaskQueue:
    """先进先出的异步任务队列，同时最多执行 max_concurrent 个任务"""

    def __init__(self, max_concurrent: int = 1) -> None:
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be >= 1, got {max_concurrent}")
        self.max_concurrent = max_concurrent
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._waiting = 0
        self._active = 0

    @property
    def queue_length(self) -> int:
        """等待中的任务数"""
        return self._waiting

    @property
    def active(self) -> int:
        """执行中的任务数"""
        return self._active

    @property
    def idle(self) -> bool:
        return self._waiting == 0 and self._active == 0

    async def submit(self, task: Callable[[], Awaitable[T]]) -> T:
        """排队执行 task 并返回其结果；task 的异常原样抛给调用方"""
        self._waiting += 1
        try:
            await self._semaphore.acquire()
        finally:
            self._waiting -= 1

        self._active += 1
        try:
            return await task()
        finally:
            self._active -= 1
            self._semaphore.release()


class TaskQueueRegistry:
    """按键（帧 id）管理队列，空闲队列在 release() 时回收"""

    def __init__(self, max_concurrent: int = 1) -> None:
        self.max_concurrent = max_concurrent
        # frame_id -> queue
        self._queues: Dict[Hashable, TaskQueue] = {}

    def get(self, key: Hashable) -> TaskQueue:
        queue = self._queues.get(key)
        if queue is None:
            queue = TaskQueue(self.max_concurrent)
            self._queues[key] = queue
        return queue

    async def run(self, key: Hashable, task: Callable[[], Awaitable[T]]) -> T:
        try:
            return await self.get(key).submit(task)
        finally:
            self.release(key)

    def release(self, key: Hashable) -> None:
        queue = self._queues.get(key)
        if queue is not None and queue.idle:
            self._queues.pop(key, None)

    def __len__(self) -> int:
        return len(self._queues)


_registry: TaskQueueRegistry | None = None


def get_canvas_queues(max_concurrent: int = 1) -> TaskQueueRegistry:
    """进程内共享的画布队列；并发数取第一次创建时的配置"""
    global _registry
    if _registry is None:
        _registry = TaskQueueRegistry(max_concurrent)
    return _registry
