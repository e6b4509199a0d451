from datetime import datetime, UTC
from typing import Any, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, Relationship, SQLModel


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class Project(SQLModel, table=True):
    """项目"""

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    script: str = ""
    style: str = Field(default="Anime")
    style_zh: Optional[str] = None
    aspect_ratio: str = Field(default="16:9")
    duration: float = Field(default=15.0)
    frame_count: int = Field(default=1)
    reference_image: Optional[str] = None  # 参考主体图片
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    frames: List["Frame"] = Relationship(
        back_populates="project",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class Frame(SQLModel, table=True):
    """分镜帧"""

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="project.id", index=True)
    number: int = Field(index=True)
    description: str = ""
    description_zh: Optional[str] = None
    image_url: Optional[str] = None
    # 符号列表（Symbol.model_dump 的结果）
    symbols: List[dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    project: Optional[Project] = Relationship(back_populates="frames")
