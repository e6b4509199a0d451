"""WebSocket 画布会话：把客户端的拖放/指针消息驱动到交互状态机"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storyboard.canvas.geometry import FixedCanvas
from storyboard.canvas.interaction import (
    InteractionConfig,
    InteractionStateMachine,
    PointerEventSource,
    PointerPosition,
)
from storyboard.canvas.store import SymbolStore
from storyboard.canvas.symbols import Symbol
from storyboard.config import Settings
from storyboard.exceptions import AppException, FrameNotFound, SymbolRejected
from storyboard.schemas.ws import (
    DropData,
    EditSymbolData,
    OpenFrameData,
    PointerData,
    PointerDownData,
    PointerUpData,
    SymbolRef,
    WsMessage,
)
from storyboard.services.frame_service import FrameService, apply_symbol_update
from storyboard.services.task_queue import TaskQueueRegistry, get_canvas_queues
from storyboard.ws.manager import ConnectionManager

logger = logging.getLogger(__name__)

Event = dict[str, Any]


class CanvasSession:
    """单个连接的画布会话。

    每个连接最多打开一个帧，并持有自己的交互状态机；
    同一帧上的操作经由按帧的任务队列串行执行，每次操作都从数据库重新加载符号并在修改后写回。
    """

    def __init__(
        self,
        project_id: int,
        ws: ConnectionManager,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        queues: TaskQueueRegistry | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.project_id = project_id
        self.ws = ws
        self.settings = settings
        self.session_factory = session_factory
        self.queues = queues or get_canvas_queues(settings.canvas_queue_concurrency)
        self._clock = clock
        self.frame_id: int | None = None
        self.machine: InteractionStateMachine | None = None
        self._handlers: dict[str, Callable[[dict[str, Any]], list[Event]]] = {
            "drop": self._drop,
            "pointer_down": self._pointer_down,
            "pointer_move": self._pointer_move,
            "pointer_up": self._pointer_up,
            "background_click": self._background_click,
            "remove_symbol": self._remove_symbol,
            "edit_symbol": self._edit_symbol,
            "cancel": self._cancel,
        }

    async def handle(self, raw: Any) -> None:
        """处理一条客户端消息；所有错误都以事件形式返回，不会中断连接"""
        try:
            message = WsMessage.model_validate(raw)
        except ValidationError as e:
            await self._send_error("WS_BAD_MESSAGE", "无法识别的消息", {"errors": _errors(e)})
            return

        try:
            if message.type == "ping":
                await self._send({"type": "pong", "data": {}})
            elif message.type == "open_frame":
                await self._open_frame(OpenFrameData.model_validate(message.data))
            else:
                await self._dispatch(message.type, message.data)
        except SymbolRejected as e:
            await self._send(
                {
                    "type": "symbol_rejected",
                    "data": {
                        "frame_id": self.frame_id,
                        "code": e.code,
                        "message": e.message,
                        "details": e.details,
                    },
                }
            )
        except AppException as e:
            logger.warning(f"Canvas message {message.type} failed: {e.code} - {e.message}")
            await self._send_error(e.code, e.message, e.details)
        except ValidationError as e:
            await self._send_error("WS_INVALID_DATA", "消息数据不合法", {"errors": _errors(e)})

    def close(self) -> None:
        if self.machine is not None:
            self.machine.reset()

    async def _open_frame(self, data: OpenFrameData) -> None:
        async with self.session_factory() as session:
            service = FrameService(session, self.settings, self.queues)
            row = await service.get_frame(data.frame_id)
            if row.project_id != self.project_id:
                raise FrameNotFound(data.frame_id)
            store = service.load_store(row)

        self.close()
        self.frame_id = data.frame_id
        self.machine = InteractionStateMachine(
            store,
            FixedCanvas(1.0, 1.0),
            pointer=PointerEventSource(),
            config=InteractionConfig.from_settings(self.settings),
            clock=self._clock,
        )
        await self._send(
            {
                "type": "frame_opened",
                "data": {
                    "frame_id": data.frame_id,
                    "symbols": [_symbol_payload(s) for s in store.symbols],
                },
            }
        )

    async def _dispatch(self, message_type: str, data: dict[str, Any]) -> None:
        if self.frame_id is None or self.machine is None:
            raise AppException("No frame is open on this connection", code="NO_FRAME_OPEN")
        handler = self._handlers[message_type]
        frame_id = self.frame_id

        async def _run() -> list[Event]:
            async with self.session_factory() as session:
                service = FrameService(session, self.settings, self.queues)
                async with service.edit_frame(frame_id) as store:
                    self.machine.rebind(store)
                    return handler(data)

        events = await self.queues.run(frame_id, _run)
        for event in events:
            await self._send(event)

    @property
    def _store(self) -> SymbolStore:
        return self.machine.store

    def _drop(self, data: dict[str, Any]) -> list[Event]:
        drop = DropData.model_validate(data)
        symbol = self._store.drop(
            drop.payload, drop.x, drop.y, FixedCanvas(drop.canvas_width, drop.canvas_height)
        )
        if symbol is None:
            return []
        return [self._symbol_event("symbol_added", symbol)]

    def _pointer_down(self, data: dict[str, Any]) -> list[Event]:
        down = PointerDownData.model_validate(data)
        self.machine.canvas = FixedCanvas(down.canvas_width, down.canvas_height)
        self.machine.pointer_down(down.symbol_id, down.handle, PointerPosition(down.x, down.y))
        return [self._selection_event()]

    def _pointer_move(self, data: dict[str, Any]) -> list[Event]:
        move = PointerData.model_validate(data)
        session = self.machine.session
        if session is None:
            # 没有进行中的手势，忽略
            return []
        self.machine.pointer.dispatch(PointerEventSource.MOVE, PointerPosition(move.x, move.y))
        symbol = self._store.get(session.symbol_id)
        if symbol is None:
            return [self._selection_event()]
        return [self._symbol_event("symbol_updated", symbol)]

    def _pointer_up(self, data: dict[str, Any]) -> list[Event]:
        up = PointerUpData.model_validate(data)
        session = self.machine.session
        if session is None:
            return []
        if up.x is not None and up.y is not None:
            self.machine.pointer.dispatch(PointerEventSource.UP, PointerPosition(up.x, up.y))
        else:
            self.machine.pointer_up()
        events: list[Event] = []
        symbol = self._store.get(session.symbol_id)
        if symbol is not None:
            events.append(self._symbol_event("symbol_updated", symbol))
        events.append(self._selection_event())
        return events

    def _background_click(self, data: dict[str, Any]) -> list[Event]:
        if self.machine.background_click():
            return [self._selection_event()]
        return []

    def _remove_symbol(self, data: dict[str, Any]) -> list[Event]:
        ref = SymbolRef.model_validate(data)
        was_selected = self.machine.selected_symbol_id == ref.symbol_id
        removed = self.machine.remove_symbol(ref.symbol_id)
        if removed is None:
            return []
        events = [{"type": "symbol_removed", "data": {"frame_id": self.frame_id, "symbol_id": removed.id}}]
        if was_selected:
            events.append(self._selection_event())
        return events

    def _edit_symbol(self, data: dict[str, Any]) -> list[Event]:
        edit = EditSymbolData.model_validate(data)
        symbol = apply_symbol_update(self._store, edit.symbol_id, edit.changes)
        return [self._symbol_event("symbol_updated", symbol)]

    def _cancel(self, data: dict[str, Any]) -> list[Event]:
        restored = self.machine.cancel()
        events: list[Event] = []
        if restored is not None:
            events.append(self._symbol_event("symbol_updated", restored))
        events.append(self._selection_event())
        return events

    def _symbol_event(self, event_type: str, symbol: Symbol) -> Event:
        return {"type": event_type, "data": {"frame_id": self.frame_id, "symbol": _symbol_payload(symbol)}}

    def _selection_event(self) -> Event:
        return {
            "type": "selection_changed",
            "data": {
                "frame_id": self.frame_id,
                "symbol_id": self.machine.selected_symbol_id,
                "state": self.machine.state.value,
                "mode": self.machine.mode.value,
            },
        }

    async def _send(self, event: Event) -> None:
        await self.ws.send_event(self.project_id, event)

    async def _send_error(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        await self._send({"type": "error", "data": {"code": code, "message": message, "details": details or {}}})


def _symbol_payload(symbol: Symbol) -> dict[str, Any]:
    return symbol.model_dump(mode="json")


def _errors(e: ValidationError) -> list[dict[str, Any]]:
    return e.errors(include_url=False, include_context=False, include_input=False)
