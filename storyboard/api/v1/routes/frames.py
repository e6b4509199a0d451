from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from storyboard.api.deps import FrameServiceDep, SessionDep, SettingsDep, WsManagerDep
from storyboard.config import Settings
from storyboard.models.project import Frame, Project, utcnow
from storyboard.schemas.project import DirectiveRead, FrameCreate, FrameRead, FrameUpdate
from storyboard.services.frame_service import FrameService
from storyboard.ws.manager import ConnectionManager

router = APIRouter()


def _frame_payload(frame: Frame) -> dict[str, Any]:
    return FrameRead.model_validate(frame).model_dump(mode="json")


@router.post(
    "/projects/{project_id}/frames",
    response_model=FrameRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_frame(
    project_id: int,
    payload: FrameCreate,
    session: AsyncSession = SessionDep,
    service: FrameService = FrameServiceDep,
):
    project = await session.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    number = payload.number or await service.next_frame_number(project_id)
    frame = Frame(
        project_id=project_id,
        number=number,
        description=payload.description,
        description_zh=payload.description_zh,
        image_url=payload.image_url,
    )
    session.add(frame)
    await session.commit()
    await session.refresh(frame)
    return FrameRead.model_validate(frame)


@router.get("/projects/{project_id}/frames", response_model=list[FrameRead])
async def list_frames(
    project_id: int,
    session: AsyncSession = SessionDep,
    service: FrameService = FrameServiceDep,
):
    project = await session.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return [FrameRead.model_validate(f) for f in await service.list_frames(project_id)]


@router.get("/frames/{frame_id}", response_model=FrameRead)
async def get_frame(frame_id: int, session: AsyncSession = SessionDep):
    frame = await session.get(Frame, frame_id)
    if not frame:
        raise HTTPException(status_code=404, detail="Frame not found")
    return FrameRead.model_validate(frame)


@router.patch("/frames/{frame_id}", response_model=FrameRead)
async def update_frame(
    frame_id: int,
    payload: FrameUpdate,
    session: AsyncSession = SessionDep,
    ws: ConnectionManager = WsManagerDep,
):
    frame = await session.get(Frame, frame_id)
    if not frame:
        raise HTTPException(status_code=404, detail="Frame not found")
    data = payload.model_dump(exclude_unset=True)
    for k, v in data.items():
        setattr(frame, k, v)
    frame.updated_at = utcnow()
    session.add(frame)
    await session.commit()
    await session.refresh(frame)
    await ws.send_event(
        frame.project_id,
        {"type": "frame_updated", "data": {"frame": _frame_payload(frame)}},
    )
    return FrameRead.model_validate(frame)


@router.delete("/frames/{frame_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_frame(frame_id: int, session: AsyncSession = SessionDep):
    frame = await session.get(Frame, frame_id)
    if not frame:
        raise HTTPException(status_code=404, detail="Frame not found")
    await session.delete(frame)
    await session.commit()
    return None


@router.get("/frames/{frame_id}/directives", response_model=DirectiveRead)
async def get_directives(
    frame_id: int,
    language: Literal["en", "zh"] | None = Query(default=None),
    settings: Settings = SettingsDep,
    service: FrameService = FrameServiceDep,
):
    """生成单帧的镜头指令文本"""
    lang = language or settings.default_language
    text = await service.directives(frame_id, lang)
    return DirectiveRead(frame_id=frame_id, language=lang, text=text)
