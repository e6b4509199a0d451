from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Note: do not hardcode env_file here; tests instantiate Settings() directly and
    # should not implicitly read the repo's .env. Runtime uses get_settings().
    model_config = SettingsConfigDict(extra="ignore")

    app_name: str = "storyboard-canvas"
    environment: str = Field(default="dev", description="dev|staging|prod")
    log_level: str = Field(default="INFO", description="Uvicorn log level")

    api_v1_prefix: str = "/api/v1"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # 数据库（默认使用本地 SQLite）
    database_url: str = Field(default="sqlite+aiosqlite:///./storyboard.db")
    db_echo: bool = False

    # ============================================
    # 画布约束
    # ============================================
    max_symbols_per_frame: int = Field(
        default=4,
        ge=1,
        description="每帧最多符号数",
    )
    max_dialogue_per_frame: int | None = Field(
        default=2,
        ge=1,
        description="每帧最多台词气泡数，为空表示只受总数限制",
    )

    # ============================================
    # 交互
    # ============================================
    min_symbol_size: float = Field(
        default=5.0,
        gt=0,
        description="缩放时每个轴的最小尺寸（画布百分比）",
    )
    rotate_sensitivity: float = Field(
        default=0.5,
        description="旋转灵敏度（度/像素，只取水平位移）",
    )
    deselect_grace_s: float = Field(
        default=0.05,
        ge=0,
        description="拖拽结束后屏蔽背景点击的宽限期（秒）",
    )
    canvas_queue_concurrency: int = Field(
        default=1,
        ge=1,
        description="同一帧的画布操作并发数（1 表示严格串行）",
    )

    # ============================================
    # 导出
    # ============================================
    export_page_size: int = Field(default=9, ge=1, description="导出每页分镜数")
    default_language: str = Field(default="zh", description="导出默认语言：en 或 zh")
    default_duration_s: float = Field(default=15.0, gt=0, description="新项目默认总时长（秒）")

    def is_dev(self) -> bool:
        return self.environment in ("dev", "development")


@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=".env", _env_file_encoding="utf-8")
