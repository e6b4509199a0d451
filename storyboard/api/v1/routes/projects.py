from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from storyboard.api.deps import SessionDep, SettingsDep
from storyboard.config import Settings
from storyboard.models.project import Frame, Project, utcnow
from storyboard.schemas.project import ProjectCreate, ProjectRead, ProjectUpdate

router = APIRouter()


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    session: AsyncSession = SessionDep,
    settings: Settings = SettingsDep,
):
    project = Project(
        title=payload.title,
        script=payload.script,
        style=payload.style or "Anime",
        style_zh=payload.style_zh,
        aspect_ratio=payload.aspect_ratio.value,
        duration=payload.duration or settings.default_duration_s,
        frame_count=payload.frame_count,
        reference_image=payload.reference_image,
    )
    session.add(project)
    await session.commit()
    await session.refresh(project)
    return ProjectRead.model_validate(project)


@router.get("", response_model=list[ProjectRead])
async def list_projects(session: AsyncSession = SessionDep):
    res = await session.execute(select(Project).order_by(Project.created_at.desc(), Project.id.desc()))
    items = res.scalars().all()
    return [ProjectRead.model_validate(p) for p in items]


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(project_id: int, session: AsyncSession = SessionDep):
    project = await session.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return ProjectRead.model_validate(project)


@router.put("/{project_id}", response_model=ProjectRead)
async def update_project(project_id: int, payload: ProjectUpdate, session: AsyncSession = SessionDep):
    project = await session.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    data = payload.model_dump(exclude_unset=True, mode="json")
    for k, v in data.items():
        setattr(project, k, v)
    project.updated_at = utcnow()
    session.add(project)
    await session.commit()
    await session.refresh(project)
    return ProjectRead.model_validate(project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(project_id: int, session: AsyncSession = SessionDep):
    """删除项目及其所有分镜帧"""
    project = await session.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")

    await session.execute(delete(Frame).where(Frame.project_id == project_id))
    await session.delete(project)
    await session.commit()
    return None
