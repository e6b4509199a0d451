"""画布交互状态机：指针事件驱动符号的移动、缩放与旋转。

状态：``IDLE`` → ``SELECTED`` → ``TRANSFORMING``。
每次变换都基于手势开始时的符号快照计算（而不是增量累加），避免漂移；
中间结果立即写回 ``SymbolStore``。
"""
from __future__ import annotations

import logging
import time
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from storyboard.canvas.geometry import CanvasBounds, normalize_rotation, pixels_to_percent
from storyboard.canvas.store import SymbolStore
from storyboard.canvas.symbols import Symbol
from storyboard.exceptions import InteractionError, SymbolNotFound

if TYPE_CHECKING:
    from storyboard.config import Settings

logger = logging.getLogger(__name__)


class InteractionState(str, Enum):
    IDLE = "idle"
    SELECTED = "selected"
    TRANSFORMING = "transforming"


class InteractionMode(str, Enum):
    NONE = "none"
    MOVE = "move"
    RESIZE_NW = "resize-nw"
    RESIZE_NE = "resize-ne"
    RESIZE_SW = "resize-sw"
    RESIZE_SE = "resize-se"
    ROTATE = "rotate"


class Handle(str, Enum):
    """指针按下的位置：符号主体、四角缩放柄或旋转柄"""

    BODY = "body"
    NW = "nw"
    NE = "ne"
    SW = "sw"
    SE = "se"
    ROTATE = "rotate"


HANDLE_MODES: dict[Handle, InteractionMode] = {
    Handle.BODY: InteractionMode.MOVE,
    Handle.NW: InteractionMode.RESIZE_NW,
    Handle.NE: InteractionMode.RESIZE_NE,
    Handle.SW: InteractionMode.RESIZE_SW,
    Handle.SE: InteractionMode.RESIZE_SE,
    Handle.ROTATE: InteractionMode.ROTATE,
}


@dataclass(frozen=True)
class PointerPosition:
    """指针位置（像素，相对任意固定原点）"""

    x: float
    y: float


@dataclass(frozen=True)
class InteractionConfig:
    min_size: float = 5.0
    rotate_sensitivity: float = 0.5  # 度/像素
    deselect_grace_s: float = 0.05

    @classmethod
    def from_settings(cls, settings: "Settings") -> "InteractionConfig":
        return cls(
            min_size=settings.min_symbol_size,
            rotate_sensitivity=settings.rotate_sensitivity,
            deselect_grace_s=settings.deselect_grace_s,
        )


@dataclass(frozen=True)
class InteractionSession:
    symbol_id: str
    mode: InteractionMode
    anchor: PointerPosition
    snapshot: Symbol


PointerHandler = Callable[[PointerPosition], Any]


class PointerEventSource:
    """指针移动/抬起事件的分发源（相当于全局 window 监听）"""

    MOVE = "move"
    UP = "up"

    def __init__(self) -> None:
        self._handlers: dict[str, list[PointerHandler]] = defaultdict(list)

    def subscribe(self, kind: str, handler: PointerHandler) -> Callable[[], None]:
        self._handlers[kind].append(handler)

        def _unsubscribe() -> None:
            handlers = self._handlers.get(kind)
            if handlers and handler in handlers:
                handlers.remove(handler)

        return _unsubscribe

    def dispatch(self, kind: str, position: PointerPosition) -> None:
        for handler in list(self._handlers.get(kind, ())):
            handler(position)

    def listener_count(self, kind: str | None = None) -> int:
        if kind is not None:
            return len(self._handlers.get(kind, ()))
        return sum(len(h) for h in self._handlers.values())


class Gesture:
    """一次拖拽手势：构造时挂载 move/up 监听，close() 时保证卸载。

    可作为上下文管理器使用；close() 可重复调用。
    """

    def __init__(
        self,
        source: PointerEventSource,
        on_move: PointerHandler,
        on_up: PointerHandler,
    ) -> None:
        self._detachers = [
            source.subscribe(PointerEventSource.MOVE, on_move),
            source.subscribe(PointerEventSource.UP, on_up),
        ]

    @property
    def closed(self) -> bool:
        return not self._detachers

    def close(self) -> None:
        while self._detachers:
            self._detachers.pop()()

    def __enter__(self) -> "Gesture":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def apply_transform(
    mode: InteractionMode,
    snapshot: Symbol,
    dx: float,
    dy: float,
    dx_px: float,
    *,
    min_size: float = 5.0,
    rotate_sensitivity: float = 0.5,
) -> dict[str, float]:
    """根据模式与位移（dx/dy 为百分比，dx_px 为像素）计算相对快照的更新字段"""
    if mode == InteractionMode.MOVE:
        return {"x": snapshot.x + dx, "y": snapshot.y + dy}

    if mode == InteractionMode.ROTATE:
        # 只取水平像素位移
        return {"rotation": normalize_rotation(snapshot.rotation + dx_px * rotate_sensitivity)}

    if mode == InteractionMode.RESIZE_SE:
        return {
            "width": max(min_size, snapshot.width + dx),
            "height": max(min_size, snapshot.height + dy),
        }
    if mode == InteractionMode.RESIZE_SW:
        return {
            "x": snapshot.x + dx,
            "width": max(min_size, snapshot.width - dx),
            "height": max(min_size, snapshot.height + dy),
        }
    if mode == InteractionMode.RESIZE_NE:
        return {
            "y": snapshot.y + dy,
            "width": max(min_size, snapshot.width + dx),
            "height": max(min_size, snapshot.height - dy),
        }
    if mode == InteractionMode.RESIZE_NW:
        return {
            "x": snapshot.x + dx,
            "y": snapshot.y + dy,
            "width": max(min_size, snapshot.width - dx),
            "height": max(min_size, snapshot.height - dy),
        }

    raise InteractionError(f"No transform for mode {mode.value}")


class InteractionStateMachine:
    """单指针交互状态机，同一时刻最多一个活动会话"""

    def __init__(
        self,
        store: SymbolStore,
        canvas: CanvasBounds,
        pointer: PointerEventSource | None = None,
        config: InteractionConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.canvas = canvas
        self.pointer = pointer or PointerEventSource()
        self.config = config or InteractionConfig()
        self._clock = clock
        self._selected_id: str | None = None
        self._session: InteractionSession | None = None
        self._gesture: Gesture | None = None
        self._suppress_click_until = 0.0

    @property
    def state(self) -> InteractionState:
        if self._session is not None:
            return InteractionState.TRANSFORMING
        if self._selected_id is not None:
            return InteractionState.SELECTED
        return InteractionState.IDLE

    @property
    def selected_symbol_id(self) -> str | None:
        return self._selected_id

    @property
    def session(self) -> InteractionSession | None:
        return self._session

    @property
    def mode(self) -> InteractionMode:
        return self._session.mode if self._session else InteractionMode.NONE

    def rebind(self, store: SymbolStore) -> None:
        """切换到同一帧重新加载的存储；会话与选中状态保留，已不存在的符号会被清除"""
        if store.frame_id != self.store.frame_id:
            raise InteractionError(
                f"Cannot rebind frame {self.store.frame_id} state machine to frame {store.frame_id}"
            )
        self.store = store
        if self._session is not None and self._session.symbol_id not in store:
            self._end_gesture()
        if self._selected_id is not None and self._selected_id not in store:
            self._selected_id = None

    def reset(self) -> None:
        """结束手势并取消选中（连接关闭时使用）"""
        self._end_gesture()
        self._selected_id = None

    def select(self, symbol_id: str | None) -> None:
        if symbol_id is not None and symbol_id not in self.store:
            raise SymbolNotFound(symbol_id)
        self._selected_id = symbol_id

    def pointer_down(
        self, symbol_id: str, handle: Handle | str, position: PointerPosition
    ) -> InteractionSession:
        """在符号或其控制柄上按下指针，开始一次手势"""
        handle = Handle(handle)
        symbol = self.store.get(symbol_id)
        if symbol is None:
            raise SymbolNotFound(symbol_id)

        if self._session is not None:
            logger.warning(
                f"pointer_down on {symbol_id} while transforming {self._session.symbol_id}; "
                "finishing previous gesture"
            )
            self._end_gesture()

        self._selected_id = symbol_id
        self._session = InteractionSession(
            symbol_id=symbol_id,
            mode=HANDLE_MODES[handle],
            anchor=position,
            snapshot=symbol,
        )
        self._gesture = Gesture(self.pointer, self._on_pointer_move, self._on_pointer_up)
        return self._session

    def pointer_move(self, position: PointerPosition) -> Symbol | None:
        session = self._session
        if session is None:
            raise InteractionError("pointer_move without an active gesture")

        if session.symbol_id not in self.store:
            # 手势期间符号被删除
            self._end_gesture()
            self._selected_id = None
            return None

        width_px, height_px = self.canvas.size()
        dx_px = position.x - session.anchor.x
        dy_px = position.y - session.anchor.y
        dx, dy = pixels_to_percent(dx_px, dy_px, width_px, height_px)

        patch = apply_transform(
            session.mode,
            session.snapshot,
            dx,
            dy,
            dx_px,
            min_size=self.config.min_size,
            rotate_sensitivity=self.config.rotate_sensitivity,
        )
        return self.store.mutate(session.symbol_id, patch)

    def pointer_up(self, position: PointerPosition | None = None) -> Symbol | None:
        """结束手势：写入最终状态、清除会话，并在宽限期内屏蔽紧随的背景点击"""
        if self._session is None:
            return None

        result: Symbol | None = None
        try:
            if position is not None:
                result = self.pointer_move(position)
            else:
                result = self.store.get(self._session.symbol_id)
        finally:
            self._end_gesture()
            self._suppress_click_until = self._clock() + self.config.deselect_grace_s
        return result

    def cancel(self) -> Symbol | None:
        """放弃当前手势并恢复快照"""
        session = self._session
        if session is None:
            return None
        self._end_gesture()
        if session.symbol_id not in self.store:
            return None
        restore = session.snapshot.model_dump(exclude={"id", "category"})
        return self.store.mutate(session.symbol_id, restore)

    def background_click(self) -> bool:
        """点击画布背景：非变换中且不在宽限期内时取消选中。返回是否取消了选中。"""
        if self._session is not None:
            return False
        if self._clock() < self._suppress_click_until:
            return False
        if self._selected_id is None:
            return False
        self._selected_id = None
        return True

    def remove_symbol(self, symbol_id: str) -> Symbol | None:
        if self._session is not None and self._session.symbol_id == symbol_id:
            self._end_gesture()
        removed = self.store.remove(symbol_id)
        if self._selected_id == symbol_id:
            self._selected_id = None
        return removed

    def _on_pointer_move(self, position: PointerPosition) -> None:
        try:
            self.pointer_move(position)
        except Exception:
            self._end_gesture()
            raise

    def _on_pointer_up(self, position: PointerPosition) -> None:
        self.pointer_up(position)

    def _end_gesture(self) -> None:
        gesture, self._gesture = self._gesture, None
        self._session = None
        if gesture is not None:
            gesture.close()
