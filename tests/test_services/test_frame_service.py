from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from storyboard.models.project import Frame
from storyboard.schemas.project import SymbolCreate, SymbolUpdate
from storyboard.services.frame_service import FrameService
from storyboard.services.task_queue import TaskQueueRegistry

from tests.factories import create_frame, create_project, make_symbol


@pytest_asyncio.fixture(scope="function")
async def file_session_factory(tmp_path):
    # 文件数据库：每个会话使用独立连接，与线上部署一致
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'frames.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


async def _seed(session_factory, symbols=None) -> int:
    async with session_factory() as session:
        project = await create_project(session)
        frame = await create_frame(session, project.id, symbols=symbols)
        return frame.id


async def _stored_symbols(session_factory, frame_id: int) -> list[dict]:
    async with session_factory() as session:
        row = await session.get(Frame, frame_id)
        return row.symbols


@pytest.mark.asyncio
async def test_concurrent_creates_keep_every_symbol(file_session_factory, test_settings):
    frame_id = await _seed(file_session_factory)
    queues = TaskQueueRegistry(1)

    async def create(payload: SymbolCreate):
        async with file_session_factory() as session:
            service = FrameService(session, test_settings, queues)
            return await service.create_symbol(frame_id, payload)

    camera, action = await asyncio.gather(
        create(SymbolCreate(category="Camera", name="Zoom In", icon="zoom-in")),
        create(SymbolCreate(category="Action", name="Jump", icon="jump")),
    )

    stored = await _stored_symbols(file_session_factory, frame_id)
    assert sorted(s["id"] for s in stored) == sorted([camera.id, action.id])
    assert len(queues) == 0


@pytest.mark.asyncio
async def test_concurrent_update_and_delete(file_session_factory, test_settings):
    frame_id = await _seed(
        file_session_factory,
        symbols=[make_symbol("Camera", "zoom-in", id="cam"), make_symbol("Emotion", "happy", id="emo")],
    )
    queues = TaskQueueRegistry(1)

    async def update():
        async with file_session_factory() as session:
            service = FrameService(session, test_settings, queues)
            return await service.update_symbol(frame_id, "cam", SymbolUpdate(x=10))

    async def delete():
        async with file_session_factory() as session:
            service = FrameService(session, test_settings, queues)
            return await service.delete_symbol(frame_id, "emo")

    await asyncio.gather(update(), delete())

    stored = await _stored_symbols(file_session_factory, frame_id)
    assert [s["id"] for s in stored] == ["cam"]
    assert stored[0]["x"] == 10


@pytest.mark.asyncio
async def test_directives_position_ignores_number_gaps(file_session_factory, test_settings):
    async with file_session_factory() as session:
        project = await create_project(session, duration=10, frame_count=2)
        await create_frame(session, project.id, number=2)
        gapped = await create_frame(session, project.id, number=9)

        service = FrameService(session, test_settings, TaskQueueRegistry(1))
        text = await service.directives(gapped.id, "zh")

    assert text.splitlines()[0] == "镜头 2 / SC-09（时间：5.0-10.0秒，阶段：发展，进展：发展）"
