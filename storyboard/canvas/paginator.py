"""导出分页：把分镜帧切成固定大小的页，并给出每页的网格列数与提示词"""
from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

from pydantic import BaseModel, Field

from storyboard.canvas.directives import build_export_prompt
from storyboard.canvas.symbols import Frame, ProjectConfig

DEFAULT_PAGE_SIZE = 9

T = TypeVar("T")


class ExportPage(BaseModel):
    index: int = Field(ge=1)
    frames: list[Frame]
    columns: int
    prompt: str


def paginate(items: Sequence[T], page_size: int = DEFAULT_PAGE_SIZE) -> list[list[T]]:
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return [list(items[i : i + page_size]) for i in range(0, len(items), page_size)]


def grid_columns(count: int) -> int:
    """每页条目数 → 网格列数"""
    if count <= 4:
        return 2
    return 3


def build_pages(
    frames: Sequence[Frame],
    config: ProjectConfig,
    language: str = "en",
    page_size: int = DEFAULT_PAGE_SIZE,
) -> list[ExportPage]:
    pages: list[ExportPage] = []
    start = 1
    for page_index, chunk in enumerate(paginate(frames, page_size), start=1):
        pages.append(
            ExportPage(
                index=page_index,
                frames=chunk,
                columns=grid_columns(len(chunk)),
                prompt=build_export_prompt(chunk, config, language, start=start),
            )
        )
        start += len(chunk)
    return pages
