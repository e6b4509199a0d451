from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Query

from storyboard.api.deps import FrameServiceDep, SettingsDep
from storyboard.config import Settings
from storyboard.schemas.project import ExportPageRead, ExportRead
from storyboard.services.frame_service import FrameService

router = APIRouter()


@router.get("/projects/{project_id}/export", response_model=ExportRead)
async def export_project(
    project_id: int,
    language: Literal["en", "zh"] | None = Query(default=None),
    page_size: int | None = Query(default=None, ge=1, le=50),
    settings: Settings = SettingsDep,
    service: FrameService = FrameServiceDep,
):
    """按页导出分镜指令（每页一段完整提示词）"""
    lang = language or settings.default_language
    size = page_size or settings.export_page_size
    rows, pages = await service.export(project_id, lang, size)
    return ExportRead(
        project_id=project_id,
        language=lang,
        page_size=size,
        total_frames=len(rows),
        pages=[
            ExportPageRead(
                index=page.index,
                frame_ids=[int(f.id) for f in page.frames],
                columns=page.columns,
                prompt=page.prompt,
            )
            for page in pages
        ],
    )
