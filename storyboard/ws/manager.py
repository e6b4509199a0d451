from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from storyboard.schemas.ws import WsEvent

logger = logging.getLogger(__name__)


class ConnectionManager:
    """按项目分组的 WebSocket 连接，事件广播给同一项目的所有画布"""

    def __init__(self) -> None:
        self._conns: dict[int, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def connect(self, project_id: int, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._conns[project_id].add(websocket)

    async def disconnect(self, project_id: int, websocket: WebSocket) -> None:
        async with self._lock:
            if project_id in self._conns:
                self._conns[project_id].discard(websocket)
                if not self._conns[project_id]:
                    self._conns.pop(project_id, None)

    async def send_event(self, project_id: int, event: dict[str, Any] | WsEvent) -> None:
        if isinstance(event, dict):
            event = WsEvent.model_validate(event)
        payload = event.model_dump(mode="json")
        conns = list(self._conns.get(project_id, set()))
        for ws in conns:
            if ws.client_state != WebSocketState.CONNECTED:
                continue
            try:
                await ws.send_json(payload)
            except Exception as e:
                logger.info(f"Dropping websocket for project {project_id}: {e}")
                await self.disconnect(project_id, ws)


ws_manager = ConnectionManager()
