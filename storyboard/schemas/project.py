from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from storyboard.canvas.symbols import AspectRatio, Symbol, SymbolCategory


class ProjectCreate(BaseModel):
    title: str = Field(min_length=1)
    script: str = ""
    style: str | None = None
    style_zh: str | None = None
    aspect_ratio: AspectRatio = AspectRatio.RATIO_16_9
    duration: float | None = Field(default=None, gt=0)
    frame_count: int = Field(default=1, ge=1)
    reference_image: str | None = None


class ProjectUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1)
    script: str | None = None
    style: str | None = None
    style_zh: str | None = None
    aspect_ratio: AspectRatio | None = None
    duration: float | None = Field(default=None, gt=0)
    frame_count: int | None = Field(default=None, ge=1)
    reference_image: str | None = None


class ProjectRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    script: str
    style: str
    style_zh: str | None
    aspect_ratio: str
    duration: float
    frame_count: int
    reference_image: str | None
    created_at: datetime
    updated_at: datetime


class FrameCreate(BaseModel):
    number: int | None = Field(default=None, ge=1)
    description: str = ""
    description_zh: str | None = None
    image_url: str | None = None


class FrameUpdate(BaseModel):
    number: int | None = Field(default=None, ge=1)
    description: str | None = None
    description_zh: str | None = None
    image_url: str | None = None


class FrameRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    number: int
    description: str
    description_zh: str | None
    image_url: str | None
    symbols: list[Symbol]
    created_at: datetime
    updated_at: datetime


class CanvasSize(BaseModel):
    canvas_width: float = Field(gt=0)
    canvas_height: float = Field(gt=0)


class SymbolDrop(CanvasSize):
    """从符号库拖放：像素坐标 + 画布尺寸 + 拖放载荷"""

    payload: Any
    x: float
    y: float


class SymbolCreate(BaseModel):
    """直接指定百分比几何的符号"""

    category: SymbolCategory
    name: str = Field(min_length=1)
    icon: str = Field(min_length=1)
    x: float = 50.0
    y: float = 50.0
    width: float = Field(default=15.0, gt=0)
    height: float = Field(default=15.0, gt=0)
    rotation: float = 0.0
    text: str | None = None
    description: str | None = None


class SymbolUpdate(BaseModel):
    name: str | None = None
    icon: str | None = None
    x: float | None = None
    y: float | None = None
    width: float | None = Field(default=None, gt=0)
    height: float | None = Field(default=None, gt=0)
    rotation: float | None = None
    text: str | None = None
    description: str | None = None


class DirectiveRead(BaseModel):
    frame_id: int
    language: Literal["en", "zh"]
    text: str


class ExportPageRead(BaseModel):
    index: int
    frame_ids: list[int]
    columns: int
    prompt: str


class ExportRead(BaseModel):
    project_id: int
    language: Literal["en", "zh"]
    page_size: int
    total_frames: int
    pages: list[ExportPageRead]
