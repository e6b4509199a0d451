from __future__ import annotations

import asyncio

import pytest

from storyboard.services.task_queue import TaskQueue, TaskQueueRegistry


class _Tracker:
    def __init__(self) -> None:
        self.active = 0
        self.peak = 0
        self.order: list[int] = []

    def task(self, n: int, delay: float = 0.01):
        async def _run() -> int:
            self.active += 1
            self.peak = max(self.peak, self.active)
            self.order.append(n)
            await asyncio.sleep(delay)
            self.active -= 1
            return n * 10

        return _run


@pytest.mark.asyncio
async def test_serial_queue_runs_one_at_a_time_in_order():
    queue = TaskQueue(1)
    tracker = _Tracker()

    results = await asyncio.gather(*(queue.submit(tracker.task(n)) for n in range(5)))

    assert results == [0, 10, 20, 30, 40]
    assert tracker.peak == 1
    assert tracker.order == [0, 1, 2, 3, 4]
    assert queue.idle


@pytest.mark.asyncio
async def test_bounded_concurrency():
    queue = TaskQueue(2)
    tracker = _Tracker()

    await asyncio.gather(*(queue.submit(tracker.task(n)) for n in range(6)))

    assert tracker.peak == 2


@pytest.mark.asyncio
async def test_queue_length_and_active():
    queue = TaskQueue(1)
    gate = asyncio.Event()

    async def _blocked() -> None:
        await gate.wait()

    first = asyncio.create_task(queue.submit(_blocked))
    second = asyncio.create_task(queue.submit(_blocked))
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert queue.active == 1
    assert queue.queue_length == 1

    gate.set()
    await asyncio.gather(first, second)
    assert queue.active == 0
    assert queue.queue_length == 0


@pytest.mark.asyncio
async def test_failure_propagates_and_frees_slot():
    queue = TaskQueue(1)

    async def _fail() -> None:
        raise RuntimeError("boom")

    async def _ok() -> str:
        return "ok"

    with pytest.raises(RuntimeError, match="boom"):
        await queue.submit(_fail)
    assert await queue.submit(_ok) == "ok"


def test_invalid_concurrency():
    with pytest.raises(ValueError):
        TaskQueue(0)


@pytest.mark.asyncio
async def test_registry_isolates_keys_and_releases_idle_queues():
    registry = TaskQueueRegistry(1)
    tracker = _Tracker()

    await asyncio.gather(
        registry.run(1, tracker.task(1, 0.02)),
        registry.run(2, tracker.task(2, 0.02)),
    )

    # 不同帧之间不互相阻塞
    assert tracker.peak == 2
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_registry_serializes_same_key():
    registry = TaskQueueRegistry(1)
    tracker = _Tracker()

    await asyncio.gather(*(registry.run("frame", tracker.task(n)) for n in range(3)))

    assert tracker.peak == 1
    assert tracker.order == [0, 1, 2]
