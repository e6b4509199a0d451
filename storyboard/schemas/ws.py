from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from storyboard.canvas.interaction import Handle
from storyboard.schemas.project import CanvasSize, SymbolDrop, SymbolUpdate


WsEventType = Literal[
    "connected",
    "pong",
    "frame_opened",       # 打开帧（返回当前符号）
    "frame_updated",      # 帧的剧情文字等字段变化
    "symbol_added",       # 符号放置成功
    "symbol_updated",     # 符号几何/文字变化（拖拽中间态也会推送）
    "symbol_removed",     # 符号删除
    "symbol_rejected",    # 放置约束不满足
    "selection_changed",  # 选中状态变化
    "error",
]

WsMessageType = Literal[
    "ping",
    "open_frame",
    "drop",
    "pointer_down",
    "pointer_move",
    "pointer_up",
    "background_click",
    "remove_symbol",
    "edit_symbol",
    "cancel",
]


class WsEvent(BaseModel):
    type: WsEventType
    data: dict[str, Any] = {}


class WsMessage(BaseModel):
    type: WsMessageType
    data: dict[str, Any] = Field(default_factory=dict)


class OpenFrameData(BaseModel):
    frame_id: int


class DropData(SymbolDrop):
    pass


class PointerDownData(CanvasSize):
    symbol_id: str
    handle: Handle = Handle.BODY
    x: float
    y: float


class PointerData(BaseModel):
    x: float
    y: float


class PointerUpData(BaseModel):
    x: float | None = None
    y: float | None = None


class SymbolRef(BaseModel):
    symbol_id: str


class EditSymbolData(SymbolRef):
    changes: SymbolUpdate
