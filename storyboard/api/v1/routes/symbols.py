from __future__ import annotations

from typing import Any

from fastapi import APIRouter, status
from pydantic import BaseModel

from storyboard.api.deps import FrameServiceDep, WsManagerDep
from storyboard.canvas.symbols import SYMBOL_LIBRARY, LibraryItem, Symbol
from storyboard.schemas.project import SymbolCreate, SymbolDrop, SymbolUpdate
from storyboard.services.frame_service import FrameService
from storyboard.ws.manager import ConnectionManager

router = APIRouter()


class DropResult(BaseModel):
    # 载荷无效时为 None（忽略，不报错）
    symbol: Symbol | None


class LibraryCategory(BaseModel):
    category: str
    items: list[LibraryItem]


def _symbol_event(event_type: str, frame_id: int, symbol: Symbol) -> dict[str, Any]:
    return {"type": event_type, "data": {"frame_id": frame_id, "symbol": symbol.model_dump(mode="json")}}


@router.get("/symbols/library", response_model=list[LibraryCategory])
async def get_symbol_library():
    """内置符号库，按分类分组"""
    return [
        LibraryCategory(category=category.value, items=list(items))
        for category, items in SYMBOL_LIBRARY.items()
    ]


@router.post("/frames/{frame_id}/symbols", response_model=Symbol, status_code=status.HTTP_201_CREATED)
async def create_symbol(
    frame_id: int,
    payload: SymbolCreate,
    service: FrameService = FrameServiceDep,
    ws: ConnectionManager = WsManagerDep,
):
    symbol = await service.create_symbol(frame_id, payload)
    frame = await service.get_frame(frame_id)
    await ws.send_event(frame.project_id, _symbol_event("symbol_added", frame_id, symbol))
    return symbol


@router.post("/frames/{frame_id}/symbols/drop", response_model=DropResult)
async def drop_symbol(
    frame_id: int,
    payload: SymbolDrop,
    service: FrameService = FrameServiceDep,
    ws: ConnectionManager = WsManagerDep,
):
    """从符号库拖放到画布（像素坐标）"""
    symbol = await service.drop_symbol(frame_id, payload)
    if symbol is not None:
        frame = await service.get_frame(frame_id)
        await ws.send_event(frame.project_id, _symbol_event("symbol_added", frame_id, symbol))
    return DropResult(symbol=symbol)


@router.patch("/frames/{frame_id}/symbols/{symbol_id}", response_model=Symbol)
async def update_symbol(
    frame_id: int,
    symbol_id: str,
    payload: SymbolUpdate,
    service: FrameService = FrameServiceDep,
    ws: ConnectionManager = WsManagerDep,
):
    symbol = await service.update_symbol(frame_id, symbol_id, payload)
    frame = await service.get_frame(frame_id)
    await ws.send_event(frame.project_id, _symbol_event("symbol_updated", frame_id, symbol))
    return symbol


@router.delete("/frames/{frame_id}/symbols/{symbol_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_symbol(
    frame_id: int,
    symbol_id: str,
    service: FrameService = FrameServiceDep,
    ws: ConnectionManager = WsManagerDep,
):
    removed = await service.delete_symbol(frame_id, symbol_id)
    if removed is not None:
        frame = await service.get_frame(frame_id)
        await ws.send_event(
            frame.project_id,
            {"type": "symbol_removed", "data": {"frame_id": frame_id, "symbol_id": symbol_id}},
        )
    return None
