from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from storyboard.canvas.symbols import Frame as CanvasFrame, Symbol, SymbolCategory
from storyboard.models.project import Frame, Project


async def create_project(
    session: AsyncSession,
    title: str = "Test Project",
    script: str = "A cat chases a ball",
    style: str = "Anime",
    style_zh: str | None = "动漫",
    aspect_ratio: str = "16:9",
    duration: float = 15.0,
    frame_count: int = 4,
    reference_image: str | None = None,
) -> Project:
    project = Project(
        title=title,
        script=script,
        style=style,
        style_zh=style_zh,
        aspect_ratio=aspect_ratio,
        duration=duration,
        frame_count=frame_count,
        reference_image=reference_image,
    )
    session.add(project)
    await session.commit()
    await session.refresh(project)
    return project


async def create_frame(
    session: AsyncSession,
    project_id: int,
    number: int = 1,
    description: str = "The cat crouches",
    description_zh: str | None = "猫蹲下",
    symbols: list[Symbol] | None = None,
) -> Frame:
    frame = Frame(
        project_id=project_id,
        number=number,
        description=description,
        description_zh=description_zh,
        symbols=[s.model_dump(mode="json") for s in symbols or []],
    )
    session.add(frame)
    await session.commit()
    await session.refresh(frame)
    return frame


def make_symbol(
    category: SymbolCategory | str = SymbolCategory.CAMERA,
    icon: str = "zoom-in",
    *,
    id: str | None = None,
    name: str | None = None,
    **fields: Any,
) -> Symbol:
    category = SymbolCategory(category)
    data: dict[str, Any] = {
        "id": id or f"sym-{category.value.lower()}-{icon}",
        "category": category,
        "name": name or icon,
        "icon": icon,
        "x": 50.0,
        "y": 50.0,
        "width": 15.0,
        "height": 15.0,
    }
    data.update(fields)
    return Symbol(**data)


def make_frame(*symbols: Symbol, number: int = 1, **fields: Any) -> CanvasFrame:
    data: dict[str, Any] = {"id": f"frame-{number}", "number": number, "description": "The cat crouches"}
    data.update(fields)
    return CanvasFrame(symbols=list(symbols), **data)
