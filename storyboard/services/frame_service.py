from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from storyboard.canvas.directives import translate
from storyboard.canvas.geometry import FixedCanvas
from storyboard.canvas.paginator import ExportPage, build_pages
from storyboard.canvas.store import CanvasLimits, SymbolStore, new_symbol_id
from storyboard.canvas.symbols import DIALOGUE_MAX_CHARS, Frame as CanvasFrame, ProjectConfig, Symbol
from storyboard.config import Settings
from storyboard.exceptions import FrameNotFound, InvalidSymbol, ProjectNotFound
from storyboard.models.project import Frame, Project, utcnow
from storyboard.schemas.project import SymbolCreate, SymbolDrop, SymbolUpdate
from storyboard.services.task_queue import TaskQueueRegistry, get_canvas_queues

logger = logging.getLogger(__name__)

T = TypeVar("T")


def project_config(project: Project, frame_total: int | None = None) -> ProjectConfig:
    """由项目行构建只读配置快照；帧总数取项目设定与实际帧数的较大者"""
    frame_count = max(project.frame_count or 1, frame_total or 0)
    return ProjectConfig(
        script=project.script or "",
        style_name=project.style,
        style_name_zh=project.style_zh,
        aspect_ratio=project.aspect_ratio,
        duration=project.duration,
        frame_count=frame_count,
        reference_image=project.reference_image,
    )


def _invalid_symbol(e: ValidationError) -> InvalidSymbol:
    errors = e.errors(include_url=False, include_context=False, include_input=False)
    return InvalidSymbol(f"Invalid symbol: {errors[0]['msg'] if errors else e}", details={"errors": errors})


def to_canvas_frame(row: Frame) -> CanvasFrame:
    return CanvasFrame(
        id=str(row.id),
        number=row.number,
        description=row.description or "",
        description_zh=row.description_zh,
        symbols=[Symbol.model_validate(s) for s in row.symbols or []],
    )


class FrameService:
    """帧与符号的读写。所有符号修改都经过 SymbolStore，并在修改后立即持久化。

    符号修改与 WebSocket 画布会话共用按帧的任务队列，同一帧的读改写不会交错。
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings,
        queues: TaskQueueRegistry | None = None,
    ):
        self.session = session
        self.settings = settings
        self.queues = queues or get_canvas_queues(settings.canvas_queue_concurrency)

    async def get_project(self, project_id: int) -> Project:
        project = await self.session.get(Project, project_id)
        if not project:
            raise ProjectNotFound(project_id)
        return project

    async def get_frame(self, frame_id: int, *, refresh: bool = False) -> Frame:
        frame = await self.session.get(Frame, frame_id, populate_existing=refresh)
        if not frame:
            raise FrameNotFound(frame_id)
        return frame

    async def list_frames(self, project_id: int) -> list[Frame]:
        res = await self.session.execute(
            select(Frame).where(Frame.project_id == project_id).order_by(Frame.number.asc(), Frame.id.asc())
        )
        return list(res.scalars().all())

    async def next_frame_number(self, project_id: int) -> int:
        res = await self.session.execute(
            select(func.max(Frame.number)).where(Frame.project_id == project_id)
        )
        current = res.scalar_one_or_none()
        return (current or 0) + 1

    def load_store(self, row: Frame) -> SymbolStore:
        return SymbolStore(to_canvas_frame(row), limits=CanvasLimits.from_settings(self.settings))

    async def save_symbols(self, row: Frame, frame: CanvasFrame) -> Frame:
        row.symbols = [s.model_dump(mode="json") for s in frame.symbols]
        row.updated_at = utcnow()
        self.session.add(row)
        await self.session.commit()
        await self.session.refresh(row)
        logger.info(f"Saved {len(frame.symbols)} symbols for frame {row.id}")
        return row

    @asynccontextmanager
    async def edit_frame(self, frame_id: int) -> AsyncIterator[SymbolStore]:
        """加载帧的符号存储；块内有修改则在退出时写回数据库。

        调用方负责在该帧的任务队列内使用（见 _serialized）。
        """
        row = await self.get_frame(frame_id, refresh=True)
        store = self.load_store(row)
        changes: list[CanvasFrame] = []
        unsubscribe = store.subscribe(changes.append)
        try:
            yield store
        finally:
            unsubscribe()
        if changes:
            await self.save_symbols(row, changes[-1])

    async def _serialized(self, frame_id: int, task: Callable[[], Awaitable[T]]) -> T:
        return await self.queues.run(frame_id, task)

    async def drop_symbol(self, frame_id: int, data: SymbolDrop) -> Symbol | None:
        async def _drop() -> Symbol | None:
            async with self.edit_frame(frame_id) as store:
                return store.drop(
                    data.payload, data.x, data.y, FixedCanvas(data.canvas_width, data.canvas_height)
                )

        return await self._serialized(frame_id, _drop)

    async def create_symbol(self, frame_id: int, data: SymbolCreate) -> Symbol:
        fields = data.model_dump()
        if isinstance(fields.get("text"), str):
            fields["text"] = fields["text"][:DIALOGUE_MAX_CHARS]
        try:
            symbol = Symbol(id=new_symbol_id(), is_custom=data.icon.startswith("data:"), **fields)
        except ValidationError as e:
            raise _invalid_symbol(e) from e

        async def _add() -> Symbol:
            async with self.edit_frame(frame_id) as store:
                return store.add(symbol)

        return await self._serialized(frame_id, _add)

    async def update_symbol(self, frame_id: int, symbol_id: str, data: SymbolUpdate) -> Symbol:
        async def _update() -> Symbol:
            async with self.edit_frame(frame_id) as store:
                return apply_symbol_update(store, symbol_id, data)

        return await self._serialized(frame_id, _update)

    async def delete_symbol(self, frame_id: int, symbol_id: str) -> Symbol | None:
        async def _remove() -> Symbol | None:
            async with self.edit_frame(frame_id) as store:
                return store.remove(symbol_id)

        return await self._serialized(frame_id, _remove)

    async def directives(self, frame_id: int, language: str) -> str:
        row = await self.get_frame(frame_id)
        project = await self.get_project(row.project_id)
        frames = await self.list_frames(project.id)
        config = project_config(project, len(frames))
        # 时间段按帧在序列中的位置计算，帧编号可能不连续
        position = next(i for i, f in enumerate(frames, start=1) if f.id == row.id)
        return translate(to_canvas_frame(row), config, language, index=position)

    async def export(
        self, project_id: int, language: str, page_size: int | None = None
    ) -> tuple[list[Frame], list[ExportPage]]:
        project = await self.get_project(project_id)
        rows = await self.list_frames(project_id)
        config = project_config(project, len(rows))
        frames = [to_canvas_frame(row) for row in rows]
        pages = build_pages(frames, config, language, page_size or self.settings.export_page_size)
        logger.info(
            f"Exported project {project_id}: {len(frames)} frames, {len(pages)} pages, "
            f"{config.duration:g}s"
        )
        return rows, pages


def apply_symbol_update(store: SymbolStore, symbol_id: str, data: SymbolUpdate) -> Symbol:
    """部分更新符号；字段校验失败转换为 InvalidSymbol"""
    try:
        return store.mutate(symbol_id, data.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise _invalid_symbol(e) from e
